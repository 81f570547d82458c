import uuid
from typing import Annotated, List
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fitlink.config import settings
from fitlink.database import get_db
from fitlink.models.user import User
from fitlink.models.profiles import Client, Coach
from fitlink.auth.schemas import TokenPayload
from fitlink.models.enums import UserType

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def _coerce_user_type(value: UserType | str) -> UserType:
    return value if isinstance(value, UserType) else UserType(value)

async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        token_type = payload.get("type")
        if subject is None or token_type != "access":
            raise credentials_exception
        token_data = TokenPayload(sub=subject, type=token_type)
        user_id = uuid.UUID(token_data.sub)
    except (JWTError, ValueError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception
    user.user_type = _coerce_user_type(user.user_type)
    return user

async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user

class RoleChecker:
    def __init__(self, allowed_types: List[UserType]):
        self.allowed_types = allowed_types

    def __call__(self, user: Annotated[User, Depends(get_current_active_user)]):
        user.user_type = _coerce_user_type(user.user_type)
        if user.user_type not in self.allowed_types:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Operation not permitted"
            )
        return user

get_current_coach = RoleChecker([UserType.COACH])
get_current_client = RoleChecker([UserType.CLIENT])
get_current_gym_owner = RoleChecker([UserType.GYM])
get_current_coach_or_gym = RoleChecker([UserType.COACH, UserType.GYM])


async def get_current_coach_record(
    current_user: Annotated[User, Depends(get_current_coach)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Coach:
    result = await db.execute(select(Coach).where(Coach.user_id == current_user.id))
    coach = result.scalar_one_or_none()
    if coach is None:
        raise HTTPException(status_code=404, detail="Coach profile not found")
    return coach


async def get_current_client_record(
    current_user: Annotated[User, Depends(get_current_client)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Client:
    result = await db.execute(select(Client).where(Client.user_id == current_user.id))
    client = result.scalar_one_or_none()
    if client is None:
        raise HTTPException(status_code=404, detail="Client profile not found")
    return client
