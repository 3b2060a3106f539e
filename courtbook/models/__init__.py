"""Database models."""
from courtbook.models.user import User, UserRole
from courtbook.models.court import Court, CourtStatus, CourtType, CourtSurface
from courtbook.models.booking import (
    ACTIVE_BOOKING_STATUSES,
    Booking,
    BookingStatus,
    PaymentMethod,
    RefundStatus,
)
from courtbook.models.tournament import (
    Registration,
    RegistrationPaymentStatus,
    RegistrationStatus,
    SkillLevel,
    Tournament,
    TournamentStatus,
)
from courtbook.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "UserRole",
    "Court",
    "CourtStatus",
    "CourtType",
    "CourtSurface",
    "ACTIVE_BOOKING_STATUSES",
    "Booking",
    "BookingStatus",
    "PaymentMethod",
    "RefundStatus",
    "Registration",
    "RegistrationPaymentStatus",
    "RegistrationStatus",
    "SkillLevel",
    "Tournament",
    "TournamentStatus",
    "Notification",
    "NotificationType",
]
