"""Booking schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, date, time
from decimal import Decimal

from courtbook.models.booking import PaymentMethod
from courtbook.schemas.court import CourtSummary
from courtbook.schemas.user import UserSummary


class BookingCreate(BaseModel):
    """Schema for requesting a hold on a slot."""

    court_id: int
    date: date
    time: time
    duration: int = Field(default=1, ge=1, le=8)
    players: int = Field(default=2, ge=1, le=8)
    notes: Optional[str] = Field(default=None, max_length=500)
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER


class AdminBookingCreate(BookingCreate):
    """Schema for a booking entered directly by an admin."""

    user_id: int
    payment_method: PaymentMethod = PaymentMethod.CASH
    total_amount: Optional[Decimal] = Field(default=None, ge=0)


class PaymentProofUpload(BaseModel):
    payment_proof_url: str = Field(min_length=1, max_length=500)


class BookingVerify(BaseModel):
    action: str  # approve or reject


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=200)


class BookingInDB(BaseModel):
    """Schema for booking from database."""

    id: int
    court_id: Optional[int] = None
    user_id: int
    date: date
    time: time
    duration: int
    players: int
    total_amount: Decimal
    status: str
    hold_expires_at: Optional[datetime] = None
    payment_proof_url: Optional[str] = None
    payment_method: str
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Decimal
    refund_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    court: Optional[CourtSummary] = None
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    current: int
    pages: int
    total: int
    limit: int


class BookingList(BaseModel):
    data: List[BookingInDB]
    pagination: Pagination


class BookingStatusCount(BaseModel):
    status: str
    count: int
    total_amount: Decimal


class BookingStats(BaseModel):
    total_bookings: int
    total_revenue: Decimal
    status_breakdown: List[BookingStatusCount]


class SweepResult(BaseModel):
    expired: int
