"""Court model."""
from enum import Enum

from sqlalchemy import Column, Integer, String, Boolean, Float, ForeignKey, DateTime, Numeric, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from courtbook.core.database import Base


class CourtStatus(str, Enum):
    AVAILABLE = "Available"
    DISABLED = "Disabled"
    MAINTENANCE = "Maintenance"


class CourtType(str, Enum):
    INDOOR = "Indoor"
    OUTDOOR = "Outdoor"


class CourtSurface(str, Enum):
    SYNTHETIC = "Synthetic"
    CLAY = "Clay"
    GRASS = "Grass"
    CONCRETE = "Concrete"


class Court(Base):
    """Represents a bookable padel court listed by an owner."""

    __tablename__ = "courts"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    location = Column(String(255), nullable=False)
    street = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True, index=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True, default="Pakistan")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    price_per_hour = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=CourtStatus.AVAILABLE.value)
    court_type = Column(String(20), nullable=False)
    surface = Column(String(20), nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    operating_hours = Column(JSON, nullable=True)  # {"monday": {"open": "08:00", "close": "23:00", "closed": false}, ...}
    description = Column(String(500), nullable=True)
    max_players = Column(Integer, default=4, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="courts")
    bookings = relationship("Booking", back_populates="court", passive_deletes=True)

    __table_args__ = (
        Index("ix_courts_filters", "status", "court_type", "surface", "price_per_hour", "is_featured"),
    )
