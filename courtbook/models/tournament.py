"""Tournament and registration models."""
from enum import Enum

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from courtbook.core.database import Base


class SkillLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class TournamentStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class RegistrationPaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class Tournament(Base):
    """Represents a tournament run by an organizer."""

    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, index=True)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    location = Column(String(255), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    registration_deadline = Column(DateTime(timezone=True), nullable=False)
    entry_fee = Column(Numeric(10, 2), nullable=False)
    skill_level = Column(String(20), nullable=False)
    max_participants = Column(Integer, nullable=True)  # None means unlimited
    status = Column(String(20), nullable=False, default=TournamentStatus.UPCOMING.value)
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    registrations = relationship("Registration", back_populates="tournament")


class Registration(Base):
    """Represents a player's (or team's) entry into a tournament."""

    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)  # Stored lowercase
    phone = Column(String(30), nullable=False)
    team_name = Column(String(100), nullable=True)
    skill_level = Column(String(20), nullable=False)
    partner_name = Column(String(100), nullable=True)
    partner_email = Column(String(255), nullable=True)
    partner_phone = Column(String(30), nullable=True)
    payment_status = Column(String(20), nullable=False, default=RegistrationPaymentStatus.PENDING.value)
    payment_method = Column(String(20), nullable=False, default="bank_transfer")
    payment_proof_url = Column(String(500), nullable=True)
    payment_amount = Column(Numeric(10, 2), nullable=False)
    registration_notes = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=RegistrationStatus.PENDING.value)
    cancellation_reason = Column(String(200), nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=False, default=0)
    refund_status = Column(String(20), nullable=False, default="none")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    tournament = relationship("Tournament", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("tournament_id", "email", name="uq_registrations_tournament_email"),
        Index("ix_registrations_status_created", "status", "created_at"),
    )
