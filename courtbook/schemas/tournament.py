"""Tournament schemas."""
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from courtbook.models.booking import PaymentMethod
from courtbook.models.tournament import SkillLevel, RegistrationPaymentStatus, TournamentStatus


class TournamentCreate(BaseModel):
    """Schema for creating a tournament."""

    title: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=255)
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    entry_fee: Decimal = Field(ge=0)
    skill_level: SkillLevel
    max_participants: Optional[int] = Field(default=None, ge=1)


class TournamentUpdate(BaseModel):
    """Schema for editing tournament details. Only the fields sent are changed."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    entry_fee: Optional[Decimal] = Field(default=None, ge=0)
    skill_level: Optional[SkillLevel] = None
    max_participants: Optional[int] = Field(default=None, ge=1)

    @field_validator(
        "title", "location", "start_date", "end_date", "registration_deadline", "entry_fee", "skill_level"
    )
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class TournamentStatusUpdate(BaseModel):
    status: TournamentStatus


class TournamentInDB(BaseModel):
    """Schema for tournament from database."""

    id: int
    organizer_id: int
    title: str
    location: str
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    entry_fee: Decimal
    skill_level: str
    max_participants: Optional[int] = None
    status: str
    is_approved: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RegistrationCreate(BaseModel):
    """Schema for registering for a tournament."""

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    phone: str = Field(min_length=1, max_length=30)
    team_name: Optional[str] = None
    skill_level: SkillLevel
    partner_name: Optional[str] = None
    partner_email: Optional[str] = None
    partner_phone: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    registration_notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("email", "partner_email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return value.strip().lower()


class RegistrationInDB(BaseModel):
    """Schema for registration from database."""

    id: int
    tournament_id: int
    user_id: int
    name: str
    email: str
    phone: str
    team_name: Optional[str] = None
    skill_level: str
    partner_name: Optional[str] = None
    partner_email: Optional[str] = None
    payment_status: str
    payment_method: str
    payment_proof_url: Optional[str] = None
    payment_amount: Decimal
    status: str
    cancellation_reason: Optional[str] = None
    refund_amount: Decimal
    refund_status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RegistrationPaymentUpdate(BaseModel):
    payment_status: RegistrationPaymentStatus
    payment_proof_url: Optional[str] = None
