"""
Domain exceptions for the booking engine.

Every exception carries a machine-readable ``code`` so callers can tell the
failure kinds apart without parsing messages. The API layer converts them to
HTTP responses through ``to_http_exception``.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a referenced resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when a request collides with existing data."""

    status_code = status.HTTP_409_CONFLICT


class PreconditionException(DomainException):
    """Raised when a transition is attempted from the wrong state."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


# Booking errors


class CourtNotFoundException(NotFoundException):
    """Raised when a court id does not exist or is not visible to the caller."""

    def __init__(self, court_id: int):
        super().__init__(
            message="Court not found",
            code="COURT_NOT_FOUND",
            details={"court_id": court_id},
        )


class BookingNotFoundException(NotFoundException):
    """Raised when a booking does not exist within the caller's scope."""

    def __init__(self, booking_id: int):
        super().__init__(
            message="Booking not found",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class CourtUnavailableException(ConflictException):
    """Raised when a court is disabled or under maintenance."""

    def __init__(self, court_id: int, court_status: str):
        super().__init__(
            message="Court is not available for booking",
            code="COURT_UNAVAILABLE",
            details={"court_id": court_id, "court_status": court_status},
        )


class SlotTakenException(ConflictException):
    """Raised when the requested slot overlaps an active booking."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="This time slot is already booked",
            code="SLOT_TAKEN",
            details=details,
        )


class HoldExpiredException(PreconditionException):
    """Raised when payment proof arrives after the hold deadline."""

    status_code = status.HTTP_410_GONE

    def __init__(self, booking_id: int):
        super().__init__(
            message="Booking hold has expired. Please create a new booking.",
            code="HOLD_EXPIRED",
            details={"booking_id": booking_id},
        )


class BookingNotModifiableException(PreconditionException):
    """Raised when payment proof is sent for a booking that is no longer on hold."""

    def __init__(self, booking_id: int, current_status: str):
        super().__init__(
            message="Booking cannot be updated in its current status",
            code="BOOKING_NOT_MODIFIABLE",
            details={"booking_id": booking_id, "status": current_status},
        )


class BookingNotPendingException(PreconditionException):
    """Raised when verifying a booking that is not pending verification."""

    def __init__(self, booking_id: int, current_status: str):
        super().__init__(
            message="Booking is not pending verification",
            code="BOOKING_NOT_PENDING",
            details={"booking_id": booking_id, "status": current_status},
        )


class BookingNotCancellableException(PreconditionException):
    """Raised when a booking is not confirmed or starts within the cancellation cutoff."""

    def __init__(self, booking_id: int, current_status: str, hours_until_start: float):
        super().__init__(
            message="Booking cannot be cancelled",
            code="BOOKING_NOT_CANCELLABLE",
            details={
                "booking_id": booking_id,
                "status": current_status,
                "hours_until_start": round(hours_until_start, 2),
            },
        )


class InvalidVerificationActionException(ValidationException):
    """Raised when a verification action is neither approve nor reject."""

    def __init__(self, action: str):
        super().__init__(
            message='Invalid action. Use "approve" or "reject"',
            code="INVALID_ACTION",
            details={"action": action},
        )


class CourtHasActiveBookingsException(ConflictException):
    """Raised when deleting a court that still has active bookings."""

    def __init__(self, court_id: int, active_bookings: int):
        super().__init__(
            message="Cannot delete court with active bookings",
            code="COURT_HAS_ACTIVE_BOOKINGS",
            details={"court_id": court_id, "active_bookings": active_bookings},
        )


# Tournament errors


class DuplicateRegistrationException(ConflictException):
    """Raised when an email is already registered for a tournament."""

    def __init__(self, tournament_id: int, email: str):
        super().__init__(
            message="This email is already registered for the tournament",
            code="DUPLICATE_REGISTRATION",
            details={"tournament_id": tournament_id, "email": email},
        )


class RegistrationClosedException(PreconditionException):
    """Raised when a tournament is not accepting registrations."""

    def __init__(self, tournament_id: int, reason: str):
        super().__init__(
            message="Registration is not open for this tournament",
            code="REGISTRATION_CLOSED",
            details={"tournament_id": tournament_id, "reason": reason},
        )


class TournamentNotModifiableException(PreconditionException):
    """Raised when changing a tournament that is ongoing, completed or cancelled."""

    def __init__(self, tournament_id: int, current_status: str):
        super().__init__(
            message="Tournament can no longer be modified",
            code="TOURNAMENT_NOT_MODIFIABLE",
            details={"tournament_id": tournament_id, "status": current_status},
        )


class InvalidTournamentTransitionException(PreconditionException):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, tournament_id: int, current_status: str, requested_status: str):
        super().__init__(
            message=f"Cannot move tournament from {current_status} to {requested_status}",
            code="INVALID_STATUS_TRANSITION",
            details={"tournament_id": tournament_id, "status": current_status, "requested": requested_status},
        )


class TournamentHasRegistrationsException(ConflictException):
    """Raised when deleting a tournament that already has registrations."""

    def __init__(self, tournament_id: int, registrations: int):
        super().__init__(
            message="Cannot delete tournament with existing registrations",
            code="TOURNAMENT_HAS_REGISTRATIONS",
            details={"tournament_id": tournament_id, "registrations": registrations},
        )
