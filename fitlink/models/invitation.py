import uuid
from datetime import datetime, timezone
from sqlalchemy import String, ForeignKey, DateTime, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from fitlink.database import Base
from fitlink.models.enums import InvitationStatus, InvitationType, enum_values


class Invitation(Base):
    __tablename__ = "invitations"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    inviter_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    invitee_email: Mapped[str] = mapped_column(String, nullable=False, index=True)
    invitee_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    type: Mapped[InvitationType] = mapped_column(
        SAEnum(InvitationType, native_enum=False, values_callable=enum_values), nullable=False
    )
    status: Mapped[InvitationStatus] = mapped_column(
        SAEnum(InvitationStatus, native_enum=False, values_callable=enum_values),
        default=InvitationStatus.PENDING,
        nullable=False,
        index=True,
    )
    gym_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("gyms.id"), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    inviter = relationship("User", foreign_keys=[inviter_id])
    invitee = relationship("User", foreign_keys=[invitee_id])
    gym = relationship("Gym", foreign_keys=[gym_id])
