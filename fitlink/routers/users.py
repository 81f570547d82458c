from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from fitlink.database import get_db
from fitlink.auth import dependencies
from fitlink.auth.schemas import UserResponse, UserUpdate
from fitlink.models.user import User
from fitlink.core.responses import StandardResponse
from fitlink.services.audit_service import AuditService

router = APIRouter()


async def _get_user_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}", response_model=StandardResponse[UserResponse])
async def get_user(
    user_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    user = await _get_user_or_404(db, user_id)
    return StandardResponse(data=UserResponse.model_validate(user))


@router.patch("/{user_id}", response_model=StandardResponse[UserResponse])
async def update_user(
    user_id: uuid.UUID,
    data: UserUpdate,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Users may only edit their own profile."""
    if user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Cannot update another user's profile")
    user = await _get_user_or_404(db, user_id)

    update_data = data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(user, key, value)

    await AuditService.log_action(
        db,
        user_id=current_user.id,
        action="UPDATE_PROFILE",
        target_id=str(user.id),
        details=f"Updated profile fields: {', '.join(sorted(update_data)) or 'none'}",
    )
    await db.commit()
    await db.refresh(user)
    return StandardResponse(data=UserResponse.model_validate(user), message="User updated successfully")
