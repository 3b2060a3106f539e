"""Booking model."""
from enum import Enum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Time, Numeric, Index, CheckConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from courtbook.core.database import Base


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    HOLD = "hold"
    PENDING_VERIFICATION = "pending_verification"
    CONFIRMED = "confirmed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    COMPLETED = "completed"  # Applied externally once the slot has been played


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CARD = "card"


class RefundStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


# Statuses that occupy a slot
ACTIVE_BOOKING_STATUSES = (
    BookingStatus.HOLD.value,
    BookingStatus.PENDING_VERIFICATION.value,
    BookingStatus.CONFIRMED.value,
)

_ACTIVE_SLOT_PREDICATE = text(
    "status IN ({})".format(", ".join(f"'{s}'" for s in ACTIVE_BOOKING_STATUSES))
)


class Booking(Base):
    """Represents a reservation of a court slot."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(Integer, ForeignKey("courts.id", ondelete="SET NULL"), nullable=True, index=True)  # Null once the court is deleted
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)  # Local to settings.BOOKING_TIMEZONE
    time = Column(Time, nullable=False)  # Start time, minute resolution
    duration = Column(Integer, nullable=False, default=1)  # Hours
    players = Column(Integer, nullable=False, default=2)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(32), nullable=False, default=BookingStatus.HOLD.value)
    hold_expires_at = Column(DateTime(timezone=True), nullable=True)  # Set while status is hold
    payment_proof_url = Column(String(500), nullable=True)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.BANK_TRANSFER.value)
    notes = Column(String(500), nullable=True)
    cancellation_reason = Column(String(200), nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=False, default=0)
    refund_status = Column(String(20), nullable=False, default=RefundStatus.NONE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    court = relationship("Court", back_populates="bookings")
    user = relationship("User", back_populates="bookings")

    __table_args__ = (
        # At most one active booking per court/date/time
        Index(
            "uq_bookings_active_slot",
            "court_id",
            "date",
            "time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_bookings_user_created", "user_id", "created_at"),
        Index("ix_bookings_court_date_status", "court_id", "date", "status"),
        Index("ix_bookings_status_hold_expires", "status", "hold_expires_at"),
        CheckConstraint("duration BETWEEN 1 AND 8", name="ck_bookings_duration"),
        CheckConstraint("players BETWEEN 1 AND 8", name="ck_bookings_players"),
        CheckConstraint("total_amount >= 0", name="ck_bookings_total_amount"),
        CheckConstraint("refund_amount <= total_amount", name="ck_bookings_refund_amount"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def __repr__(self):
        return f"<Booking(id={self.id}, court={self.court_id}, {self.date} {self.time}, status={self.status})>"
