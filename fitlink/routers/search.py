from typing import Annotated, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.profiles import Coach, Gym
from fitlink.models.user import User
from fitlink.schemas import CoachResponse, GymResponse

router = APIRouter()


@router.get("/coaches", response_model=StandardResponse[List[CoachResponse]])
async def search_coaches(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    q: str | None = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
):
    """Active coaches matching name, specialization or location."""
    stmt = (
        select(Coach)
        .join(User, Coach.user_id == User.id)
        .where(Coach.is_active.is_(True), User.is_active.is_(True))
        .options(selectinload(Coach.user))
    )
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        stmt = stmt.where(
            or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                (User.first_name + " " + User.last_name).ilike(pattern),
                User.specialization.ilike(pattern),
                User.location.ilike(pattern),
            )
        )
    coaches = (await db.execute(stmt.order_by(User.last_name, User.first_name).limit(limit))).scalars().all()
    return StandardResponse(data=[CoachResponse.model_validate(c) for c in coaches])


@router.get("/gyms", response_model=StandardResponse[List[GymResponse]])
async def search_gyms(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    q: str | None = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
):
    stmt = select(Gym).where(Gym.is_active.is_(True))
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        stmt = stmt.where(or_(Gym.name.ilike(pattern), Gym.address.ilike(pattern)))
    gyms = (await db.execute(stmt.order_by(Gym.name).limit(limit))).scalars().all()
    return StandardResponse(data=[GymResponse.model_validate(g) for g in gyms])
