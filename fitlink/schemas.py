import re
import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9\s\-()]{6,19}$")


def normalize_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value

    normalized = value.strip()
    if not PHONE_PATTERN.match(normalized):
        raise ValueError("Invalid phone number format")
    return normalized


def validate_birth_date(value: Optional[date]) -> Optional[date]:
    if value is None:
        return value

    if value > date.today():
        raise ValueError("date_of_birth cannot be in the future")
    if value < date(1900, 1, 1):
        raise ValueError("date_of_birth is too far in the past")
    return value


def reject_nulls(data: Any, fields: tuple[str, ...]) -> Any:
    """Explicit nulls are not allowed for columns that must always hold a value."""
    if isinstance(data, dict):
        nulls = sorted(field for field in fields if field in data and data[field] is None)
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
    return data


class UserSummary(BaseModel):
    id: uuid.UUID
    email: EmailStr
    first_name: str
    last_name: str
    profile_photo: Optional[str] = None
    location: Optional[str] = None
    specialization: Optional[str] = None

    class Config:
        from_attributes = True


class GymCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    description: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_phone(value)


class GymUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    description: Optional[str] = Field(default=None, max_length=2000)
    is_active: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def reject_required_nulls(cls, data: Any) -> Any:
        return reject_nulls(data, ("name", "is_active"))

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_phone(value)


class GymResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CoachResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    gym_id: Optional[uuid.UUID] = None
    hourly_rate: Optional[int] = None
    availability: Optional[Any] = None
    is_active: bool
    created_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class CoachUpdate(BaseModel):
    hourly_rate: Optional[int] = Field(default=None, ge=0)
    availability: Optional[dict[str, Any] | list[Any]] = None
    is_active: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def reject_required_nulls(cls, data: Any) -> Any:
        return reject_nulls(data, ("is_active",))


class ClientResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    coach_id: Optional[uuid.UUID] = None
    gym_id: Optional[uuid.UUID] = None
    fitness_goals: Optional[str] = None
    medical_conditions: Optional[str] = None
    is_active: bool
    created_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class ClientUpdate(BaseModel):
    fitness_goals: Optional[str] = Field(default=None, max_length=2000)
    medical_conditions: Optional[str] = Field(default=None, max_length=2000)
