"""Court schemas."""
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from typing import Optional, Dict, List
from datetime import datetime, date
from decimal import Decimal

from courtbook.core.exceptions import ValidationException
from courtbook.models.court import CourtStatus, CourtType, CourtSurface
from courtbook.services.slot_guard import MINUTES_PER_DAY, WEEKDAYS, parse_hhmm, to_minutes


class OperatingDay(BaseModel):
    """Opening hours for one weekday."""

    open: Optional[str] = None  # HH:MM
    close: Optional[str] = None  # HH:MM, "00:00" is midnight
    closed: bool = False

    @field_validator("open", "close")
    @classmethod
    def validate_hhmm(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            return parse_hhmm(value).strftime("%H:%M")
        except ValidationException as e:
            raise ValueError(e.message) from e

    @model_validator(mode="after")
    def validate_window(self) -> "OperatingDay":
        if self.open and self.close:
            opens = to_minutes(parse_hhmm(self.open))
            closes = to_minutes(parse_hhmm(self.close)) or MINUTES_PER_DAY
            if opens >= closes:
                raise ValueError("Opening time must be before closing time")
        return self


def _normalize_weekdays(value: Optional[Dict[str, OperatingDay]]) -> Optional[Dict[str, OperatingDay]]:
    if value is None:
        return value
    value = {day.strip().lower(): hours for day, hours in value.items()}
    unknown = sorted(set(value) - set(WEEKDAYS))
    if unknown:
        raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
    return value


class CourtBase(BaseModel):
    """Base court schema."""

    name: str = Field(min_length=1, max_length=120)
    location: str = Field(min_length=1, max_length=255)
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = "Pakistan"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price_per_hour: Decimal = Field(ge=0)
    status: CourtStatus = CourtStatus.AVAILABLE
    court_type: CourtType
    surface: CourtSurface
    operating_hours: Optional[Dict[str, OperatingDay]] = None
    description: Optional[str] = Field(default=None, max_length=500)
    max_players: int = Field(default=4, ge=1, le=8)

    @field_validator("operating_hours")
    @classmethod
    def validate_weekdays(cls, value):
        return _normalize_weekdays(value)


class CourtCreate(CourtBase):
    """Schema for creating a court."""

    pass


class CourtUpdate(BaseModel):
    """Schema for updating a court. Omitted fields are left unchanged."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    price_per_hour: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[CourtStatus] = None
    court_type: Optional[CourtType] = None
    surface: Optional[CourtSurface] = None
    operating_hours: Optional[Dict[str, OperatingDay]] = None
    description: Optional[str] = Field(default=None, max_length=500)
    max_players: Optional[int] = Field(default=None, ge=1, le=8)

    @field_validator("operating_hours")
    @classmethod
    def validate_weekdays(cls, value):
        return _normalize_weekdays(value)

    @field_validator("name", "location", "price_per_hour", "status", "court_type", "surface", "max_players")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        # These columns are NOT NULL; omit the field to keep the current value
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class CourtInDB(CourtBase):
    """Schema for court from database."""

    id: int
    owner_id: int
    is_featured: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CourtSummary(BaseModel):
    """Court details attached to bookings."""

    id: int
    name: str
    location: str
    price_per_hour: Decimal
    owner_id: int

    model_config = ConfigDict(from_attributes=True)


class CourtFeaturedUpdate(BaseModel):
    is_featured: bool


class CourtAvailability(BaseModel):
    """Result of a slot availability check."""

    court_id: int
    date: date
    time: str
    duration: int
    available: bool
    reason: Optional[str] = None  # court_unavailable, slot_taken


class CourtSlots(BaseModel):
    """Free start times for a court on a day."""

    court_id: int
    date: date
    duration: int
    slots: List[str]
