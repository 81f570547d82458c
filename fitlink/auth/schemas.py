from typing import Any, Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from fitlink.models.enums import UserType
from fitlink.schemas import GymCreate, normalize_phone, reject_nulls, validate_birth_date
import uuid

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    exp: Optional[int] = None
    type: Optional[str] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class ProfileFields(BaseModel):
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    location: Optional[str] = Field(default=None, max_length=200)
    bio: Optional[str] = Field(default=None, max_length=500)
    specialization: Optional[str] = Field(default=None, max_length=200)
    experience: Optional[str] = Field(default=None, max_length=500)
    certifications: Optional[str] = Field(default=None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_phone(value)

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, value: Optional[date]) -> Optional[date]:
        return validate_birth_date(value)

class UserBase(ProfileFields):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    user_type: UserType

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

class UserCreate(UserBase):
    password: str = Field(min_length=6, max_length=128)
    # Only used when user_type is "gym": creates the first owned gym.
    gym: Optional[GymCreate] = None

class UserResponse(UserBase):
    id: uuid.UUID
    # Set only by the profile photo upload.
    profile_photo: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class UserUpdate(ProfileFields):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)

    @model_validator(mode="before")
    @classmethod
    def reject_required_nulls(cls, data: Any) -> Any:
        return reject_nulls(data, ("first_name", "last_name"))

class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=128)

class SessionResponse(Token):
    user: UserResponse
    role_data: Any = None

class MeResponse(BaseModel):
    user: UserResponse
    role_data: Any = None
