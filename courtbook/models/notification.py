"""Notification model."""
from enum import Enum

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, JSON, Index
from sqlalchemy.sql import func
from courtbook.core.database import Base


class NotificationType(str, Enum):
    BOOKING = "booking"
    CANCELLATION = "cancellation"
    PAYMENT = "payment"
    TOURNAMENT = "tournament"
    SYSTEM = "system"


class Notification(Base):
    """A message for a user produced by a booking or tournament event."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    priority = Column(String(10), default="medium", nullable=False)  # low, medium, high, urgent
    action_url = Column(String(500), nullable=True)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_notifications_user_read_created", "user_id", "read", "created_at"),
    )
