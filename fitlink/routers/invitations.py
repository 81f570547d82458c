import uuid
from datetime import datetime
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.enums import InvitationStatus, InvitationType
from fitlink.models.invitation import Invitation
from fitlink.models.user import User
from fitlink.services.invitation_service import InvitationService, is_expired

router = APIRouter()


# --- Pydantic Models ---
class InvitationCreate(BaseModel):
    type: InvitationType
    invitee_email: EmailStr | None = None
    gym_id: uuid.UUID | None = None
    expires_at: datetime | None = None

    @field_validator("invitee_email")
    @classmethod
    def lowercase_email(cls, value: str | None) -> str | None:
        return value.lower() if value else value


class InvitationRespond(BaseModel):
    status: InvitationStatus


class InvitationResponse(BaseModel):
    id: uuid.UUID
    inviter_id: uuid.UUID
    invitee_email: str
    invitee_id: uuid.UUID | None = None
    type: InvitationType
    status: InvitationStatus
    gym_id: uuid.UUID | None = None
    expires_at: datetime | None = None
    responded_at: datetime | None = None
    created_at: datetime
    is_expired: bool = False

    class Config:
        from_attributes = True


def _to_response(invitation: Invitation) -> InvitationResponse:
    expired = invitation.status == InvitationStatus.PENDING and is_expired(invitation)
    return InvitationResponse.model_validate(invitation).model_copy(update={"is_expired": expired})


# --- Endpoints ---

@router.post("", response_model=StandardResponse[InvitationResponse])
async def create_invitation(
    data: InvitationCreate,
    current_user: Annotated[User, Depends(dependencies.get_current_coach_or_gym)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    invitation = await InvitationService.create(
        db,
        inviter=current_user,
        invitation_type=data.type,
        invitee_email=data.invitee_email,
        gym_id=data.gym_id,
        expires_at=data.expires_at,
    )
    await db.commit()
    return StandardResponse(data=_to_response(invitation), message="Invitation sent")


@router.get("/inviter/{inviter_id}", response_model=StandardResponse[List[InvitationResponse]])
async def list_sent_invitations(
    inviter_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status: InvitationStatus | None = Query(None),
):
    if inviter_id != current_user.id:
        raise HTTPException(status_code=403, detail="Cannot view invitations sent by another user")
    stmt = select(Invitation).where(Invitation.inviter_id == inviter_id)
    if status:
        stmt = stmt.where(Invitation.status == status)
    invitations = (await db.execute(stmt.order_by(Invitation.created_at.desc()))).scalars().all()
    return StandardResponse(data=[_to_response(i) for i in invitations])


@router.get("/invitee/{email}", response_model=StandardResponse[List[InvitationResponse]])
async def list_received_invitations(
    email: str,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status: InvitationStatus | None = Query(None),
):
    email = email.strip().lower()
    if email != current_user.email.lower():
        raise HTTPException(status_code=403, detail="Cannot view invitations addressed to another user")
    stmt = select(Invitation).where(func.lower(Invitation.invitee_email) == email)
    if status:
        stmt = stmt.where(Invitation.status == status)
    invitations = (await db.execute(stmt.order_by(Invitation.created_at.desc()))).scalars().all()
    return StandardResponse(data=[_to_response(i) for i in invitations])


@router.get("/{invitation_id}", response_model=StandardResponse[InvitationResponse])
async def get_invitation(
    invitation_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    invitation = await InvitationService.get_or_404(db, invitation_id)
    is_party = invitation.inviter_id == current_user.id or invitation.invitee_email.lower() == current_user.email.lower()
    if not is_party:
        raise HTTPException(status_code=403, detail="Not allowed to view this invitation")
    return StandardResponse(data=_to_response(invitation))


@router.patch("/{invitation_id}", response_model=StandardResponse[InvitationResponse])
async def respond_to_invitation(
    invitation_id: uuid.UUID,
    data: InvitationRespond,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Accept or reject an invitation addressed to the caller."""
    invitation = await InvitationService.get_or_404(db, invitation_id)
    invitation = await InvitationService.respond(db, invitation, current_user, data.status)
    await db.commit()
    return StandardResponse(data=_to_response(invitation), message=f"Invitation {data.status.value}")
