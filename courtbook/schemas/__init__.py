"""API schemas."""
from courtbook.schemas.user import UserCreate, UserInDB, UserStatusUpdate, UserSummary
from courtbook.schemas.court import (
    CourtAvailability,
    CourtCreate,
    CourtFeaturedUpdate,
    CourtInDB,
    CourtSlots,
    CourtSummary,
    CourtUpdate,
    OperatingDay,
)
from courtbook.schemas.booking import (
    AdminBookingCreate,
    BookingCancel,
    BookingCreate,
    BookingInDB,
    BookingList,
    BookingStats,
    BookingStatusCount,
    BookingVerify,
    Pagination,
    PaymentProofUpload,
    SweepResult,
)
from courtbook.schemas.tournament import (
    RegistrationCreate,
    RegistrationInDB,
    RegistrationPaymentUpdate,
    TournamentCreate,
    TournamentInDB,
    TournamentStatusUpdate,
    TournamentUpdate,
)
from courtbook.schemas.notification import NotificationInDB

__all__ = [
    "UserCreate",
    "UserInDB",
    "UserStatusUpdate",
    "UserSummary",
    "CourtAvailability",
    "CourtCreate",
    "CourtFeaturedUpdate",
    "CourtInDB",
    "CourtSlots",
    "CourtSummary",
    "CourtUpdate",
    "OperatingDay",
    "AdminBookingCreate",
    "BookingCancel",
    "BookingCreate",
    "BookingInDB",
    "BookingList",
    "BookingStats",
    "BookingStatusCount",
    "BookingVerify",
    "Pagination",
    "PaymentProofUpload",
    "SweepResult",
    "RegistrationCreate",
    "RegistrationInDB",
    "RegistrationPaymentUpdate",
    "TournamentCreate",
    "TournamentInDB",
    "TournamentStatusUpdate",
    "TournamentUpdate",
    "NotificationInDB",
]
