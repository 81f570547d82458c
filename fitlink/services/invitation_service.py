from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.config import settings
from fitlink.models.enums import InvitationStatus, InvitationType, UserType
from fitlink.models.invitation import Invitation
from fitlink.models.profiles import Client, Coach, Gym
from fitlink.models.user import User
from fitlink.services.audit_service import AuditService

logger = logging.getLogger(__name__)

EXPECTED_INVITER = {
    InvitationType.COACH_TO_CLIENT: UserType.COACH,
    InvitationType.GYM_TO_COACH: UserType.GYM,
    InvitationType.COACH_TO_GYM: UserType.COACH,
}

EXPECTED_INVITEE = {
    InvitationType.COACH_TO_CLIENT: UserType.CLIENT,
    InvitationType.GYM_TO_COACH: UserType.COACH,
    InvitationType.COACH_TO_GYM: UserType.GYM,
}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_expired(invitation: Invitation, now: datetime | None = None) -> bool:
    if invitation.expires_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return _as_utc(invitation.expires_at) <= now


class InvitationService:
    @staticmethod
    async def _get_user_by_email(db: AsyncSession, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return (await db.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def _get_coach(db: AsyncSession, user_id: uuid.UUID) -> Coach | None:
        return (await db.execute(select(Coach).where(Coach.user_id == user_id))).scalar_one_or_none()

    @staticmethod
    async def _get_gym(db: AsyncSession, gym_id: uuid.UUID) -> Gym:
        gym = (await db.execute(select(Gym).where(Gym.id == gym_id))).scalar_one_or_none()
        if gym is None:
            raise HTTPException(status_code=404, detail="Gym not found")
        return gym

    @staticmethod
    async def get_or_404(db: AsyncSession, invitation_id: uuid.UUID) -> Invitation:
        invitation = (
            await db.execute(select(Invitation).where(Invitation.id == invitation_id))
        ).scalar_one_or_none()
        if invitation is None:
            raise HTTPException(status_code=404, detail="Invitation not found")
        return invitation

    @staticmethod
    async def create(
        db: AsyncSession,
        inviter: User,
        invitation_type: InvitationType,
        invitee_email: str | None,
        gym_id: uuid.UUID | None = None,
        expires_at: datetime | None = None,
    ) -> Invitation:
        """Validate and stage a pending invitation. The caller commits."""
        if expires_at is not None and _as_utc(expires_at) <= datetime.now(timezone.utc):
            raise HTTPException(status_code=400, detail="expires_at must be in the future")
        if inviter.user_type != EXPECTED_INVITER[invitation_type]:
            raise HTTPException(
                status_code=403,
                detail=f"Only {EXPECTED_INVITER[invitation_type].value} users can send {invitation_type.value} invitations",
            )

        if invitation_type == InvitationType.COACH_TO_CLIENT:
            coach = await InvitationService._get_coach(db, inviter.id)
            if coach is None:
                raise HTTPException(status_code=404, detail="Coach profile not found")
            if gym_id is not None:
                await InvitationService._get_gym(db, gym_id)
            else:
                gym_id = coach.gym_id
        elif invitation_type == InvitationType.GYM_TO_COACH:
            if gym_id is None:
                raise HTTPException(status_code=400, detail="gym_id is required for gym_to_coach invitations")
            gym = await InvitationService._get_gym(db, gym_id)
            if gym.owner_id != inviter.id:
                raise HTTPException(status_code=403, detail="Cannot invite on behalf of a gym you do not own")
        else:
            if gym_id is None:
                raise HTTPException(status_code=400, detail="gym_id is required for coach_to_gym invitations")
            gym = await InvitationService._get_gym(db, gym_id)
            owner = (await db.execute(select(User).where(User.id == gym.owner_id))).scalar_one()
            invitee_email = owner.email

        if not invitee_email:
            raise HTTPException(status_code=400, detail="invitee_email is required")
        invitee_email = invitee_email.strip().lower()
        if invitee_email == inviter.email.lower():
            raise HTTPException(status_code=400, detail="Cannot invite yourself")

        invitee = await InvitationService._get_user_by_email(db, invitee_email)
        if invitee is not None and invitee.user_type != EXPECTED_INVITEE[invitation_type]:
            raise HTTPException(
                status_code=400,
                detail=f"{invitation_type.value} invitations must be sent to a {EXPECTED_INVITEE[invitation_type].value} user",
            )

        duplicate_stmt = select(Invitation.id).where(
            Invitation.inviter_id == inviter.id,
            Invitation.invitee_email == invitee_email,
            Invitation.type == invitation_type,
            Invitation.status == InvitationStatus.PENDING,
        )
        duplicate_stmt = duplicate_stmt.where(
            Invitation.gym_id == gym_id if gym_id is not None else Invitation.gym_id.is_(None)
        )
        if (await db.execute(duplicate_stmt)).first() is not None:
            raise HTTPException(status_code=409, detail="A pending invitation already exists")

        invitation = Invitation(
            inviter_id=inviter.id,
            invitee_email=invitee_email,
            invitee_id=invitee.id if invitee else None,
            type=invitation_type,
            status=InvitationStatus.PENDING,
            gym_id=gym_id,
            expires_at=expires_at or datetime.now(timezone.utc) + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
        )
        db.add(invitation)
        await db.flush()

        await AuditService.log_action(
            db,
            user_id=inviter.id,
            action="CREATE_INVITATION",
            target_id=str(invitation.id),
            details=f"{invitation_type.value} to {invitee_email}",
        )
        logger.info("User %s sent %s invitation %s to %s", inviter.id, invitation_type.value, invitation.id, invitee_email)
        return invitation

    @staticmethod
    async def respond(
        db: AsyncSession,
        invitation: Invitation,
        user: User,
        status: InvitationStatus,
    ) -> Invitation:
        """Accept or reject a pending invitation and apply its relationship."""
        if invitation.invitee_email.lower() != user.email.lower():
            raise HTTPException(status_code=403, detail="Only the invitee can respond to this invitation")
        if invitation.status != InvitationStatus.PENDING:
            raise HTTPException(status_code=409, detail=f"Invitation already {invitation.status.value}")
        if is_expired(invitation):
            raise HTTPException(status_code=400, detail="Invitation has expired")
        if status == InvitationStatus.PENDING:
            raise HTTPException(status_code=422, detail="Status must be accepted or rejected")

        if status == InvitationStatus.ACCEPTED:
            await InvitationService._apply_acceptance(db, invitation, user)

        invitation.status = status
        invitation.invitee_id = user.id
        invitation.responded_at = datetime.now(timezone.utc)

        await AuditService.log_action(
            db,
            user_id=user.id,
            action=f"{status.value.upper()}_INVITATION",
            target_id=str(invitation.id),
            details=invitation.type.value,
        )
        logger.info("User %s %s invitation %s", user.id, status.value, invitation.id)
        return invitation

    @staticmethod
    async def _apply_acceptance(db: AsyncSession, invitation: Invitation, user: User) -> None:
        if invitation.type == InvitationType.COACH_TO_CLIENT:
            client = (await db.execute(select(Client).where(Client.user_id == user.id))).scalar_one_or_none()
            coach = await InvitationService._get_coach(db, invitation.inviter_id)
            if client is None or coach is None:
                raise HTTPException(status_code=400, detail="Invitation parties no longer have matching profiles")
            client.coach_id = coach.id
            if client.gym_id is None:
                client.gym_id = invitation.gym_id or coach.gym_id
        elif invitation.type == InvitationType.GYM_TO_COACH:
            coach = await InvitationService._get_coach(db, user.id)
            if coach is None:
                raise HTTPException(status_code=400, detail="Coach profile not found")
            coach.gym_id = invitation.gym_id
        else:
            coach = await InvitationService._get_coach(db, invitation.inviter_id)
            if coach is None:
                raise HTTPException(status_code=400, detail="Inviting coach profile not found")
            coach.gym_id = invitation.gym_id
