import logging
import os
import shutil
import uuid
from typing import Annotated
from datetime import timedelta, datetime, timezone
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from jose import jwt, JWTError

from fitlink.config import settings
from fitlink.database import get_db
from fitlink.auth import schemas, security, dependencies
from fitlink.models.user import User
from fitlink.models.auth import RefreshToken
from fitlink.models.enums import UserType
from fitlink.services.audit_service import AuditService
from fitlink.services.profile_service import ProfileService
from fitlink.core.responses import StandardResponse
from fitlink.core.rate_limit import rate_limit_dependency

logger = logging.getLogger(__name__)

router = APIRouter()

PROFILE_PHOTO_SUBDIR = "profiles"
PROFILE_PHOTO_EXTENSIONS = {"png", "jpg", "jpeg", "webp", "gif"}


def _stored_photo_path(url: str) -> str | None:
    """Map a /static/ photo URL to its file, or None if it points outside the profile photo directory."""
    photo_dir = os.path.realpath(os.path.join(settings.UPLOAD_DIR, PROFILE_PHOTO_SUBDIR))
    candidate = os.path.realpath(os.path.join(settings.UPLOAD_DIR, url.removeprefix("/static/")))
    if os.path.dirname(candidate) != photo_dir:
        return None
    return candidate


def _to_utc_datetime(value: int | float | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(value, tz=timezone.utc)


async def _persist_refresh_token(db: AsyncSession, user_id, refresh_token: str):
    payload = jwt.decode(refresh_token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    jti = payload.get("jti")
    exp = payload.get("exp")
    if not jti or exp is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token payload")

    token_record = RefreshToken(
        user_id=user_id,
        jti=str(jti),
        token_hash=security.hash_token(refresh_token),
        expires_at=_to_utc_datetime(exp),
    )
    db.add(token_record)


async def _issue_tokens(db: AsyncSession, user: User) -> schemas.Token:
    access_token = security.create_access_token(
        subject=str(user.id), expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    refresh_token = security.create_refresh_token(subject=str(user.id))
    await _persist_refresh_token(db, user.id, refresh_token)
    return schemas.Token(access_token=access_token, refresh_token=refresh_token, token_type="bearer")


async def _get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def _session_payload(db: AsyncSession, user: User, tokens: schemas.Token) -> schemas.SessionResponse:
    return schemas.SessionResponse(
        **tokens.model_dump(),
        user=schemas.UserResponse.model_validate(user),
        role_data=await ProfileService.build_role_data(db, user),
    )


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _log_and_commit(
    db: AsyncSession,
    *,
    user_id,
    action: str,
    target_id: str,
    details: str,
) -> None:
    await AuditService.log_action(
        db=db,
        user_id=user_id,
        action=action,
        target_id=target_id,
        details=details,
    )
    await db.commit()

@router.post(
    "/register",
    response_model=StandardResponse[schemas.SessionResponse],
    dependencies=[
        rate_limit_dependency(
            scope="auth-register",
            limit=settings.REGISTER_RATE_LIMIT,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )
    ],
)
async def register(
    user_in: schemas.UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    if await _get_user_by_email(db, user_in.email):
        raise HTTPException(
            status_code=400,
            detail="The user with this email already exists in the system.",
        )
    if user_in.gym is not None and user_in.user_type != UserType.GYM:
        raise HTTPException(status_code=400, detail="Only gym accounts can register a gym.")

    user = User(
        hashed_password=security.get_password_hash(user_in.password),
        is_active=True,
        **user_in.model_dump(exclude={"password", "gym"}),
    )
    db.add(user)
    await db.flush()

    await ProfileService.create_role_record(db, user, user_in.gym)
    tokens = await _issue_tokens(db, user)

    await _log_and_commit(
        db,
        user_id=user.id,
        action="REGISTER_USER",
        target_id=str(user.id),
        details=f"Registered {user.user_type.value} account {user.email}",
    )
    logger.info("Registered %s account %s", user.user_type.value, user.id)

    return StandardResponse(data=await _session_payload(db, user, tokens), message="User registered successfully")

@router.post(
    "/login",
    response_model=StandardResponse[schemas.SessionResponse],
    dependencies=[
        rate_limit_dependency(
            scope="auth-login",
            limit=settings.LOGIN_RATE_LIMIT,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            json_fields=("email",),
        )
    ],
)
async def login(
    login_data: schemas.LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    user = await _get_user_by_email(db, login_data.email)

    if not user or not security.verify_password(login_data.password, user.hashed_password):
        logger.info("Failed login for %s", login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")

    tokens = await _issue_tokens(db, user)
    await db.commit()
    logger.info("User %s logged in", user.id)

    return StandardResponse(data=await _session_payload(db, user, tokens), message="Login Successful")

@router.post(
    "/refresh",
    response_model=StandardResponse[schemas.Token],
    dependencies=[
        rate_limit_dependency(
            scope="auth-refresh",
            limit=settings.REFRESH_RATE_LIMIT,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )
    ],
)
async def refresh_token(
    token: Annotated[str, Depends(dependencies.oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    credentials_exception = _credentials_exception()

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        token_type = payload.get("type")
        jti = payload.get("jti")
        if subject is None or token_type != "refresh" or jti is None:
            raise credentials_exception
        user_id = uuid.UUID(str(subject))
    except (JWTError, ValueError):
        raise credentials_exception

    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if user is None or not user.is_active:
        raise credentials_exception

    refresh_stmt = select(RefreshToken).where(
        RefreshToken.user_id == user.id,
        RefreshToken.jti == str(jti),
        RefreshToken.revoked_at.is_(None)
    )
    token_record = (await db.execute(refresh_stmt)).scalar_one_or_none()

    if token_record is None:
        raise credentials_exception

    if token_record.token_hash != security.hash_token(token):
        raise credentials_exception

    now = datetime.now(timezone.utc)
    expires_at = token_record.expires_at if token_record.expires_at.tzinfo else token_record.expires_at.replace(tzinfo=timezone.utc)
    if expires_at <= now:
        raise credentials_exception

    token_record.revoked_at = now
    tokens = await _issue_tokens(db, user)
    await db.commit()

    return StandardResponse(data=tokens, message="Token Refreshed")

@router.post("/logout", response_model=StandardResponse)
async def logout(
    current_user: Annotated[User, Depends(dependencies.get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Revoke every outstanding refresh token of the caller."""
    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == current_user.id, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=datetime.now(timezone.utc))
    )
    await db.commit()
    logger.info("User %s logged out", current_user.id)
    return StandardResponse(message="Logged out successfully")

@router.get("/me", response_model=StandardResponse[schemas.MeResponse])
async def read_users_me(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return StandardResponse(
        data=schemas.MeResponse(
            user=schemas.UserResponse.model_validate(current_user),
            role_data=await ProfileService.build_role_data(db, current_user),
        )
    )

@router.put("/me", response_model=StandardResponse[schemas.UserResponse])
async def update_user_me(
    user_update: schemas.UserUpdate,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update current user profile."""
    update_data = user_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)

    await _log_and_commit(
        db,
        user_id=current_user.id,
        action="UPDATE_PROFILE",
        target_id=str(current_user.id),
        details=f"Updated profile fields: {', '.join(sorted(update_data)) or 'none'}",
    )
    await db.refresh(current_user)

    return StandardResponse(data=schemas.UserResponse.model_validate(current_user), message="Profile updated successfully")

@router.post("/me/profile-photo", response_model=StandardResponse[schemas.UserResponse])
async def upload_profile_photo(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    file: UploadFile = File(...)
):
    """Upload and update user profile photo."""
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    filename_in = os.path.basename(file.filename or "")
    file_extension = filename_in.rsplit(".", 1)[-1].lower() if "." in filename_in else "jpg"
    if file_extension not in PROFILE_PHOTO_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported image type. Allowed: {', '.join(sorted(PROFILE_PHOTO_EXTENSIONS))}",
        )

    upload_dir = os.path.join(settings.UPLOAD_DIR, PROFILE_PHOTO_SUBDIR)
    os.makedirs(upload_dir, exist_ok=True)

    filename = f"{current_user.id}_{uuid.uuid4().hex[:8]}.{file_extension}"
    file_path = os.path.join(upload_dir, filename)

    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    if current_user.profile_photo:
        old_path = _stored_photo_path(current_user.profile_photo)
        if old_path is None:
            logger.warning("Ignoring profile photo outside the upload directory: %s", current_user.profile_photo)
        elif os.path.exists(old_path):
            try:
                os.remove(old_path)
            except OSError:
                logger.warning("Could not remove old profile photo %s", old_path)

    current_user.profile_photo = f"/static/{PROFILE_PHOTO_SUBDIR}/{filename}"

    await _log_and_commit(
        db,
        user_id=current_user.id,
        action="UPDATE_PROFILE_PHOTO",
        target_id=str(current_user.id),
        details=f"Updated profile photo to {current_user.profile_photo}",
    )
    await db.refresh(current_user)

    return StandardResponse(data=schemas.UserResponse.model_validate(current_user), message="Profile photo updated successfully")

@router.put("/me/password", response_model=StandardResponse)
async def change_password(
    password_data: schemas.PasswordChange,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Change current user password."""
    if not security.verify_password(password_data.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect current password"
        )

    current_user.hashed_password = security.get_password_hash(password_data.new_password)

    await _log_and_commit(
        db,
        user_id=current_user.id,
        action="CHANGE_PASSWORD",
        target_id=str(current_user.id),
        details="Password changed successfully",
    )

    return StandardResponse(message="Password changed successfully")
