"""Booking lifecycle service.

Drives a booking through hold -> pending_verification -> confirmed/cancelled,
hold -> expired and confirmed -> cancelled (with refund). Every transition
checks the current status first and raises a typed domain error instead of
silently changing state.
"""
import logging
import math
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from courtbook.core.clock import Clock, ensure_utc, system_clock
from courtbook.core.config import settings
from courtbook.core.exceptions import (
    BookingNotCancellableException,
    BookingNotFoundException,
    BookingNotModifiableException,
    BookingNotPendingException,
    HoldExpiredException,
    InvalidVerificationActionException,
    NotFoundException,
    SlotTakenException,
)
from courtbook.models.booking import Booking, BookingStatus, RefundStatus
from courtbook.models.court import Court
from courtbook.models.notification import NotificationType
from courtbook.models.user import User, UserRole
from courtbook.schemas.booking import AdminBookingCreate, BookingCreate
from courtbook.services.notification_service import NotificationService, notification_service
from courtbook.services.refund_policy import RefundPolicy, refund_policy
from courtbook.services.slot_guard import SlotConflictGuard, slot_guard

logger = logging.getLogger(__name__)

VERIFY_APPROVE = "approve"
VERIFY_REJECT = "reject"
VERIFICATION_FAILED_REASON = "Payment verification failed"
ADMIN_CREATED_PROOF = "admin_created"

# Name of the partial unique index and the SQLite rendering of its violation
_SLOT_CONSTRAINT_MARKERS = (
    "uq_bookings_active_slot",
    "bookings.court_id, bookings.date, bookings.time",
)


class BookingScope(str, Enum):
    """Which bookings a caller may see."""

    OWN = "own"  # Bookings the caller made
    OWNED_COURTS = "owned_courts"  # Plus bookings on courts the caller owns
    ALL = "all"


def scope_for(user: User) -> BookingScope:
    if user.role == UserRole.ADMIN.value:
        return BookingScope.ALL
    if user.role == UserRole.OWNER.value:
        return BookingScope.OWNED_COURTS
    return BookingScope.OWN


def apply_scope(query, user: User, scope: Optional[BookingScope] = None):
    """Restrict a booking query to what ``user`` may see."""
    scope = scope or scope_for(user)
    if scope == BookingScope.ALL:
        return query
    if scope == BookingScope.OWNED_COURTS:
        owned_courts = select(Court.id).where(Court.owner_id == user.id)
        return query.where(or_(Booking.user_id == user.id, Booking.court_id.in_(owned_courts)))
    return query.where(Booking.user_id == user.id)


def is_slot_conflict(exc: IntegrityError) -> bool:
    text = str(getattr(exc, "orig", exc))
    return any(marker in text for marker in _SLOT_CONSTRAINT_MARKERS)


class BookingService:
    """Service for the booking lifecycle."""

    def __init__(
        self,
        clock: Clock = system_clock,
        guard: SlotConflictGuard = slot_guard,
        policy: RefundPolicy = refund_policy,
        notifier: NotificationService = notification_service,
        hold_minutes: int = settings.HOLD_MINUTES,
    ):
        self.clock = clock
        self.guard = guard
        self.policy = policy
        self.notifier = notifier
        self.hold_window = timedelta(minutes=hold_minutes)

    # Loading

    async def _load_booking(
        self, db: AsyncSession, booking_id: int, user: Optional[User] = None,
        scope: Optional[BookingScope] = None, for_update: bool = False,
    ) -> Booking:
        query = (
            select(Booking)
            .options(selectinload(Booking.court), selectinload(Booking.user))
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        if user is not None:
            query = apply_scope(query, user, scope)
        if for_update:
            query = query.with_for_update()

        result = await db.execute(query)
        booking = result.scalar_one_or_none()
        if not booking:
            raise BookingNotFoundException(booking_id)
        return booking

    async def get_booking(self, db: AsyncSession, user: User, booking_id: int) -> Booking:
        """Look up a booking within the caller's scope."""
        return await self._load_booking(db, booking_id, user=user)

    # Creation

    async def _insert(self, db: AsyncSession, booking: Booking) -> Booking:
        """Insert a booking, translating a slot index violation into SlotTakenException."""
        db.add(booking)
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            if not is_slot_conflict(exc):
                raise
            logger.info(
                f"Concurrent insert lost the race for court {booking.court_id} "
                f"at {booking.date} {booking.time:%H:%M}"
            )
            raise SlotTakenException(
                details={
                    "court_id": booking.court_id,
                    "date": booking.date.isoformat(),
                    "time": booking.time.strftime("%H:%M"),
                    "duration": booking.duration,
                }
            ) from exc

        return await self._load_booking(db, booking.id)

    async def create_hold(self, db: AsyncSession, user: User, data: BookingCreate) -> Booking:
        """
        Reserve a slot for HOLD_MINUTES while the player uploads payment proof.

        Args:
            db: Database session
            user: Player making the booking
            data: Requested slot

        Returns:
            Booking in hold status with court and user attached

        Raises:
            CourtNotFoundException: If the court does not exist
            CourtUnavailableException: If the court is disabled or in maintenance
            SlotTakenException: If the slot overlaps an active booking
            ValidationException: If the slot runs past midnight
        """
        start = data.time.replace(second=0, microsecond=0)
        court = await self.guard.ensure_bookable(db, data.court_id, data.date, start, data.duration)

        now = self.clock.now()
        booking = Booking(
            court_id=court.id,
            user_id=user.id,
            date=data.date,
            time=start,
            duration=data.duration,
            players=data.players,
            total_amount=Decimal(court.price_per_hour) * data.duration,
            status=BookingStatus.HOLD.value,
            hold_expires_at=now + self.hold_window,
            payment_method=data.payment_method.value,
            notes=data.notes,
        )
        booking = await self._insert(db, booking)

        logger.info(
            f"Booking {booking.id} held for user {user.id} on court {court.id} "
            f"at {booking.date} {booking.time:%H:%M} until {booking.hold_expires_at}"
        )

        await self.notifier.notify(
            db,
            [court.owner_id],
            NotificationType.BOOKING,
            "New booking request",
            f"New booking request for {court.name} on {booking.date} at {booking.time:%H:%M}",
            data={"booking_id": booking.id},
        )
        return booking

    async def admin_create_booking(self, db: AsyncSession, data: AdminBookingCreate) -> Booking:
        """Create an already-confirmed booking on behalf of a user."""
        result = await db.execute(select(User).where(User.id == data.user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundException("User not found", code="USER_NOT_FOUND", details={"user_id": data.user_id})

        start = data.time.replace(second=0, microsecond=0)
        court = await self.guard.ensure_bookable(db, data.court_id, data.date, start, data.duration)

        total_amount = data.total_amount
        if total_amount is None:
            total_amount = Decimal(court.price_per_hour) * data.duration

        booking = Booking(
            court_id=court.id,
            user_id=user.id,
            date=data.date,
            time=start,
            duration=data.duration,
            players=data.players,
            total_amount=total_amount,
            status=BookingStatus.CONFIRMED.value,
            payment_method=data.payment_method.value,
            payment_proof_url=ADMIN_CREATED_PROOF,
            notes=data.notes,
        )
        booking = await self._insert(db, booking)
        logger.info(f"Admin booking {booking.id} confirmed for user {user.id} on court {court.id}")
        return booking

    # Transitions

    async def attach_payment_proof(
        self, db: AsyncSession, user: User, booking_id: int, payment_proof_url: str
    ) -> Booking:
        """
        Attach a payment proof to a held booking.

        A proof that arrives after the hold deadline expires the booking
        instead of being accepted.
        """
        booking = await self._load_booking(db, booking_id, user=user, scope=BookingScope.OWN, for_update=True)

        if booking.status == BookingStatus.EXPIRED.value:
            raise HoldExpiredException(booking.id)
        if booking.status != BookingStatus.HOLD.value:
            raise BookingNotModifiableException(booking.id, booking.status)

        now = self.clock.now()
        if now > ensure_utc(booking.hold_expires_at):
            booking.status = BookingStatus.EXPIRED.value
            await db.commit()
            logger.info(f"Booking {booking.id} expired on late payment proof upload")
            raise HoldExpiredException(booking.id)

        booking.payment_proof_url = payment_proof_url
        booking.status = BookingStatus.PENDING_VERIFICATION.value
        await db.commit()
        logger.info(f"Booking {booking.id} moved to pending_verification")

        await self.notifier.notify(
            db,
            await self.notifier.admin_ids(db),
            NotificationType.PAYMENT,
            "Payment proof uploaded",
            f"Payment proof uploaded for booking #{booking.id}",
            data={"booking_id": booking.id},
        )
        return await self._load_booking(db, booking.id)

    async def verify(self, db: AsyncSession, booking_id: int, action: str) -> Booking:
        """Apply an admin's approve/reject decision to a pending booking."""
        booking = await self._load_booking(db, booking_id, for_update=True)

        if booking.status != BookingStatus.PENDING_VERIFICATION.value:
            raise BookingNotPendingException(booking.id, booking.status)

        if action == VERIFY_APPROVE:
            booking.status = BookingStatus.CONFIRMED.value
            notification = (
                NotificationType.BOOKING,
                "Booking confirmed",
                f"Your booking for {booking.court.name} has been confirmed!",
            )
        elif action == VERIFY_REJECT:
            booking.status = BookingStatus.CANCELLED.value
            booking.cancellation_reason = VERIFICATION_FAILED_REASON
            notification = (
                NotificationType.CANCELLATION,
                "Booking rejected",
                f"Your booking for {booking.court.name} was rejected due to payment verification failure.",
            )
        else:
            raise InvalidVerificationActionException(action)

        await db.commit()
        logger.info(f"Booking {booking.id} {action} -> {booking.status}")

        await self.notifier.notify(db, [booking.user_id], *notification, data={"booking_id": booking.id})
        return await self._load_booking(db, booking.id)

    async def cancel(
        self, db: AsyncSession, user: User, booking_id: int, reason: Optional[str] = None
    ) -> Booking:
        """Cancel a confirmed booking and record the refund it earns."""
        booking = await self._load_booking(db, booking_id, user=user, for_update=True)

        decision = self.policy.evaluate(booking, self.clock.now())
        if not decision.cancellable:
            raise BookingNotCancellableException(booking.id, booking.status, decision.hours_until_start)

        booking.status = BookingStatus.CANCELLED.value
        booking.cancellation_reason = reason
        booking.refund_amount = decision.refund_amount
        booking.refund_status = (
            RefundStatus.PENDING.value if decision.refund_amount > 0 else RefundStatus.NONE.value
        )
        await db.commit()
        logger.info(
            f"Booking {booking.id} cancelled {decision.hours_until_start:.1f}h before start, "
            f"refund {decision.refund_amount} ({decision.policy_basis})"
        )

        await self.notifier.notify(
            db,
            [booking.court.owner_id],
            NotificationType.CANCELLATION,
            "Booking cancelled",
            f"Booking cancelled for {booking.court.name} on {booking.date} at {booking.time:%H:%M}",
            data={"booking_id": booking.id, "refund_amount": str(decision.refund_amount)},
        )
        return await self._load_booking(db, booking.id)

    async def expire_booking(self, db: AsyncSession, booking_id: int, now: Optional[datetime] = None) -> bool:
        """
        Expire one overdue hold.

        Conditional on the row still being an overdue hold, so repeated calls
        are no-ops.

        Returns:
            True if this call changed the booking
        """
        now = now or self.clock.now()
        result = await db.execute(
            update(Booking)
            .where(
                Booking.id == booking_id,
                Booking.status == BookingStatus.HOLD.value,
                Booking.hold_expires_at < now,
            )
            .values(status=BookingStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount == 1

    async def find_overdue_hold_ids(self, db: AsyncSession, now: Optional[datetime] = None) -> List[int]:
        now = now or self.clock.now()
        result = await db.execute(
            select(Booking.id)
            .where(
                Booking.status == BookingStatus.HOLD.value,
                Booking.hold_expires_at < now,
            )
            .order_by(Booking.id)
        )
        return list(result.scalars().all())

    # Queries

    async def list_bookings(
        self,
        db: AsyncSession,
        user: User,
        status: Optional[BookingStatus] = None,
        court_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
        scope: Optional[BookingScope] = None,
    ) -> Tuple[List[Booking], int]:
        """
        List bookings visible to the caller, newest first.

        Returns:
            Tuple of (bookings on the requested page, total matching)
        """
        query = apply_scope(select(Booking), user, scope)
        if status is not None:
            query = query.where(Booking.status == status.value)
        if court_id is not None:
            query = query.where(Booking.court_id == court_id)

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()

        result = await db.execute(
            query.options(selectinload(Booking.court), selectinload(Booking.user))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_stats(self, db: AsyncSession, user: User) -> Dict[str, Any]:
        """Booking counts per status and confirmed revenue within the caller's scope."""
        scoped = apply_scope(select(Booking), user).subquery()

        rows = (
            await db.execute(
                select(
                    scoped.c.status,
                    func.count(),
                    func.coalesce(func.sum(scoped.c.total_amount), 0),
                ).group_by(scoped.c.status)
            )
        ).all()

        breakdown = [
            {"status": status, "count": count, "total_amount": Decimal(str(amount))}
            for status, count, amount in rows
        ]
        revenue = sum(
            (entry["total_amount"] for entry in breakdown if entry["status"] == BookingStatus.CONFIRMED.value),
            Decimal("0"),
        )
        return {
            "total_bookings": sum(entry["count"] for entry in breakdown),
            "total_revenue": revenue,
            "status_breakdown": breakdown,
        }

    async def delete_booking(self, db: AsyncSession, booking_id: int) -> None:
        """Physically remove a booking (admin only)."""
        booking = await self._load_booking(db, booking_id)
        await db.delete(booking)
        await db.commit()
        logger.info(f"Booking {booking_id} deleted by admin")


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


# Singleton instance
booking_service = BookingService()
