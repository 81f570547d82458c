from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitlink.models.enums import UserType
from fitlink.models.profiles import Client, Coach, Gym
from fitlink.models.user import User
from fitlink.schemas import ClientResponse, CoachResponse, GymCreate, GymResponse

logger = logging.getLogger(__name__)


class ProfileService:
    """Role records (Coach, Client, Gym) attached to a base User account."""

    @staticmethod
    async def create_role_record(
        db: AsyncSession,
        user: User,
        gym_in: GymCreate | None = None,
    ) -> Coach | Client | Gym | None:
        """Create the record that goes with the user's type.

        Coaches and clients always get exactly one record. Gym accounts only
        get a gym when registration supplied one; they can add more later.
        """
        record: Coach | Client | Gym | None = None
        if user.user_type == UserType.COACH:
            record = Coach(user_id=user.id)
        elif user.user_type == UserType.CLIENT:
            record = Client(user_id=user.id)
        elif user.user_type == UserType.GYM and gym_in is not None:
            record = Gym(owner_id=user.id, **gym_in.model_dump())

        if record is not None:
            db.add(record)
            await db.flush()
            logger.info("Created %s record %s for user %s", user.user_type.value, record.id, user.id)
        return record

    @staticmethod
    async def get_coach_by_user_id(db: AsyncSession, user_id: uuid.UUID) -> Coach | None:
        stmt = select(Coach).where(Coach.user_id == user_id).options(selectinload(Coach.user))
        return (await db.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def get_client_by_user_id(db: AsyncSession, user_id: uuid.UUID) -> Client | None:
        stmt = select(Client).where(Client.user_id == user_id).options(selectinload(Client.user))
        return (await db.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def get_gyms_by_owner(db: AsyncSession, owner_id: uuid.UUID) -> list[Gym]:
        stmt = select(Gym).where(Gym.owner_id == owner_id).order_by(Gym.created_at, Gym.name)
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def get_coach_or_404(db: AsyncSession, coach_id: uuid.UUID) -> Coach:
        stmt = select(Coach).where(Coach.id == coach_id).options(selectinload(Coach.user))
        coach = (await db.execute(stmt)).scalar_one_or_none()
        if not coach:
            raise HTTPException(status_code=404, detail="Coach not found")
        return coach

    @staticmethod
    async def get_client_or_404(db: AsyncSession, client_id: uuid.UUID) -> Client:
        stmt = select(Client).where(Client.id == client_id).options(selectinload(Client.user))
        client = (await db.execute(stmt)).scalar_one_or_none()
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    @staticmethod
    async def get_gym_or_404(db: AsyncSession, gym_id: uuid.UUID) -> Gym:
        gym = (await db.execute(select(Gym).where(Gym.id == gym_id))).scalar_one_or_none()
        if not gym:
            raise HTTPException(status_code=404, detail="Gym not found")
        return gym

    @staticmethod
    async def build_role_data(db: AsyncSession, user: User) -> Any:
        """Snapshot of the role record returned alongside the user on login."""
        if user.user_type == UserType.COACH:
            coach = await ProfileService.get_coach_by_user_id(db, user.id)
            return CoachResponse.model_validate(coach).model_dump(mode="json") if coach else None
        if user.user_type == UserType.CLIENT:
            client = await ProfileService.get_client_by_user_id(db, user.id)
            return ClientResponse.model_validate(client).model_dump(mode="json") if client else None
        if user.user_type == UserType.GYM:
            gyms = await ProfileService.get_gyms_by_owner(db, user.id)
            return [GymResponse.model_validate(gym).model_dump(mode="json") for gym in gyms]
        return None
