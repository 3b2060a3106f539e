"""User schemas."""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from courtbook.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for registering a user."""

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=128)
    phone: Optional[str] = None
    role: UserRole = UserRole.PLAYER

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("Invalid email address")
        return value


class UserSummary(BaseModel):
    """User details attached to bookings."""

    id: int
    name: str
    email: str
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserInDB(UserSummary):
    """Schema for user from database."""

    role: str
    is_active: bool
    created_at: Optional[datetime] = None


class UserStatusUpdate(BaseModel):
    """Admin change to a user's account. Only the fields sent are changed."""

    is_active: Optional[bool] = None
    role: Optional[UserRole] = None
