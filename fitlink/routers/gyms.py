import uuid
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.profiles import Client, Coach, Gym
from fitlink.models.user import User
from fitlink.schemas import ClientResponse, CoachResponse, GymCreate, GymResponse, GymUpdate
from fitlink.services.audit_service import AuditService
from fitlink.services.profile_service import ProfileService

router = APIRouter()


def _ensure_gym_owner(gym: Gym, current_user: User, *, action: str) -> None:
    if gym.owner_id != current_user.id:
        raise HTTPException(status_code=403, detail=f"Cannot {action} a gym owned by another user")


@router.post("", response_model=StandardResponse[GymResponse])
async def create_gym(
    data: GymCreate,
    current_user: Annotated[User, Depends(dependencies.get_current_gym_owner)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    gym = Gym(owner_id=current_user.id, **data.model_dump())
    db.add(gym)
    await db.flush()
    await AuditService.log_action(db, user_id=current_user.id, action="CREATE_GYM", target_id=str(gym.id), details=gym.name)
    await db.commit()
    return StandardResponse(data=GymResponse.model_validate(gym), message="Gym created")


@router.get("/owner/{owner_id}", response_model=StandardResponse[List[GymResponse]])
async def list_gyms_by_owner(
    owner_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    gyms = await ProfileService.get_gyms_by_owner(db, owner_id)
    return StandardResponse(data=[GymResponse.model_validate(g) for g in gyms])


@router.get("/{gym_id}", response_model=StandardResponse[GymResponse])
async def get_gym(
    gym_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    gym = await ProfileService.get_gym_or_404(db, gym_id)
    return StandardResponse(data=GymResponse.model_validate(gym))


@router.patch("/{gym_id}", response_model=StandardResponse[GymResponse])
async def update_gym(
    gym_id: uuid.UUID,
    data: GymUpdate,
    current_user: Annotated[User, Depends(dependencies.get_current_gym_owner)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    gym = await ProfileService.get_gym_or_404(db, gym_id)
    _ensure_gym_owner(gym, current_user, action="update")

    update_data = data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(gym, key, value)

    await AuditService.log_action(
        db,
        user_id=current_user.id,
        action="UPDATE_GYM",
        target_id=str(gym.id),
        details=f"Updated gym fields: {', '.join(sorted(update_data)) or 'none'}",
    )
    await db.commit()
    await db.refresh(gym)
    return StandardResponse(data=GymResponse.model_validate(gym), message="Gym updated")


@router.get("/{gym_id}/coaches", response_model=StandardResponse[List[CoachResponse]])
async def list_gym_coaches(
    gym_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await ProfileService.get_gym_or_404(db, gym_id)
    stmt = (
        select(Coach)
        .where(Coach.gym_id == gym_id)
        .options(selectinload(Coach.user))
        .order_by(Coach.created_at)
    )
    coaches = (await db.execute(stmt)).scalars().all()
    return StandardResponse(data=[CoachResponse.model_validate(c) for c in coaches])


@router.get("/{gym_id}/clients", response_model=StandardResponse[List[ClientResponse]])
async def list_gym_clients(
    gym_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_gym_owner)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Clients attached to a gym (owner only, client records carry medical notes)."""
    gym = await ProfileService.get_gym_or_404(db, gym_id)
    _ensure_gym_owner(gym, current_user, action="list clients of")
    stmt = (
        select(Client)
        .where(Client.gym_id == gym_id)
        .options(selectinload(Client.user))
        .order_by(Client.created_at)
    )
    clients = (await db.execute(stmt)).scalars().all()
    return StandardResponse(data=[ClientResponse.model_validate(c) for c in clients])
