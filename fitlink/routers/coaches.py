import uuid
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.profiles import Client, Coach
from fitlink.models.user import User
from fitlink.schemas import ClientResponse, CoachResponse, CoachUpdate
from fitlink.services.audit_service import AuditService
from fitlink.services.profile_service import ProfileService

router = APIRouter()


async def list_clients_for_coach(db: AsyncSession, coach_id: uuid.UUID, current_user: User) -> list[Client]:
    coach = await ProfileService.get_coach_or_404(db, coach_id)
    if coach.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Cannot view clients of another coach")
    stmt = (
        select(Client)
        .where(Client.coach_id == coach.id)
        .options(selectinload(Client.user))
        .order_by(Client.created_at)
    )
    return list((await db.execute(stmt)).scalars().all())


@router.get("/user/{user_id}", response_model=StandardResponse[CoachResponse])
async def get_coach_by_user(
    user_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    coach = await ProfileService.get_coach_by_user_id(db, user_id)
    if not coach:
        raise HTTPException(status_code=404, detail="Coach not found")
    return StandardResponse(data=CoachResponse.model_validate(coach))


@router.get("/gym/{gym_id}", response_model=StandardResponse[List[CoachResponse]])
async def list_coaches_by_gym(
    gym_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    stmt = (
        select(Coach)
        .where(Coach.gym_id == gym_id)
        .options(selectinload(Coach.user))
        .order_by(Coach.created_at)
    )
    coaches = (await db.execute(stmt)).scalars().all()
    return StandardResponse(data=[CoachResponse.model_validate(c) for c in coaches])


@router.patch("/me", response_model=StandardResponse[CoachResponse])
async def update_my_coach_profile(
    data: CoachUpdate,
    coach: Annotated[Coach, Depends(dependencies.get_current_coach_record)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    update_data = data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(coach, key, value)

    await AuditService.log_action(
        db,
        user_id=coach.user_id,
        action="UPDATE_COACH_PROFILE",
        target_id=str(coach.id),
        details=f"Updated coach fields: {', '.join(sorted(update_data)) or 'none'}",
    )
    await db.commit()
    coach = await ProfileService.get_coach_or_404(db, coach.id)
    return StandardResponse(data=CoachResponse.model_validate(coach), message="Coach profile updated")


@router.get("/{coach_id}/clients", response_model=StandardResponse[List[ClientResponse]])
async def list_coach_clients(
    coach_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    clients = await list_clients_for_coach(db, coach_id, current_user)
    return StandardResponse(data=[ClientResponse.model_validate(c) for c in clients])
