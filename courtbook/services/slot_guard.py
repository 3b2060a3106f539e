"""Slot conflict guard.

Decides whether a (court, date, start time, duration) request may proceed.
The check is read-only; the partial unique index ``uq_bookings_active_slot``
on the bookings table is what finally rejects a concurrent duplicate insert.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, time as dt_time
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.config import settings
from courtbook.core.exceptions import (
    CourtNotFoundException,
    CourtUnavailableException,
    SlotTakenException,
    ValidationException,
)
from courtbook.models.booking import ACTIVE_BOOKING_STATUSES, Booking
from courtbook.models.court import Court, CourtStatus

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

REASON_COURT_UNAVAILABLE = "court_unavailable"
REASON_SLOT_TAKEN = "slot_taken"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_hhmm(value: str) -> dt_time:
    """Parse an ``HH:MM`` string."""
    try:
        hour, minute = value.split(":")[:2]
        return dt_time(hour=int(hour), minute=int(minute))
    except (ValueError, AttributeError) as e:
        raise ValidationException(
            f"Invalid time '{value}', expected HH:MM",
            code="INVALID_TIME",
            details={"value": value},
        ) from e


def to_minutes(value: dt_time) -> int:
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_interval(start: dt_time, duration_hours: int) -> Tuple[int, int]:
    """Return the [start, end) interval of a slot in minutes after midnight."""
    start_minutes = to_minutes(start)
    return start_minutes, start_minutes + duration_hours * 60


def intervals_overlap(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] < b[1] and a[1] > b[0]


def ensure_within_day(start: dt_time, duration_hours: int) -> None:
    """Reject slots that would run past midnight."""
    _, end = slot_interval(start, duration_hours)
    if end > MINUTES_PER_DAY:
        raise ValidationException(
            "Bookings cannot extend past midnight",
            code="SLOT_CROSSES_MIDNIGHT",
            details={"time": start.strftime("%H:%M"), "duration": duration_hours},
        )


def generate_slots(start: str = "06:00", end: str = "23:00") -> List[str]:
    """
    Hourly start times from ``start`` (inclusive) up to ``end`` (exclusive).

    An ``end`` of "00:00" means midnight at the end of the day.
    """
    start_minutes = to_minutes(parse_hhmm(start))
    end_minutes = to_minutes(parse_hhmm(end)) or MINUTES_PER_DAY
    return [format_minutes(m) for m in range(start_minutes, end_minutes, 60)]


def opening_window(court: Court, day: date) -> Optional[Tuple[str, str]]:
    """
    Opening and closing time of a court on a given day.

    Falls back to the configured defaults when the court has no hours for
    that weekday. Returns None when the court is closed all day.
    """
    hours = (court.operating_hours or {}).get(WEEKDAYS[day.weekday()]) or {}
    if hours.get("closed"):
        return None
    return (
        hours.get("open") or settings.DEFAULT_OPEN_TIME,
        hours.get("close") or settings.DEFAULT_CLOSE_TIME,
    )


@dataclass
class SlotCheck:
    """Outcome of a guard check."""

    court: Court
    allowed: bool
    reason: Optional[str] = None
    conflicting_booking_ids: List[int] = field(default_factory=list)


class SlotConflictGuard:
    """Pre-insert check that a slot is free on a bookable court."""

    async def get_court(self, db: AsyncSession, court_id: int) -> Court:
        result = await db.execute(select(Court).where(Court.id == court_id))
        court = result.scalar_one_or_none()
        if not court:
            raise CourtNotFoundException(court_id)
        return court

    async def active_bookings(
        self, db: AsyncSession, court_id: int, booking_date: date
    ) -> Sequence[Booking]:
        result = await db.execute(
            select(Booking).where(
                Booking.court_id == court_id,
                Booking.date == booking_date,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
        )
        return result.scalars().all()

    async def check(
        self,
        db: AsyncSession,
        court_id: int,
        booking_date: date,
        start: dt_time,
        duration: int = 1,
    ) -> SlotCheck:
        """
        Check whether a slot can be reserved.

        Args:
            db: Database session
            court_id: Court to book
            booking_date: Local calendar day
            start: Start time
            duration: Length in hours

        Returns:
            SlotCheck describing whether the request may proceed

        Raises:
            CourtNotFoundException: If the court does not exist
            ValidationException: If the slot would run past midnight
        """
        ensure_within_day(start, duration)
        court = await self.get_court(db, court_id)

        if court.status != CourtStatus.AVAILABLE.value:
            return SlotCheck(court=court, allowed=False, reason=REASON_COURT_UNAVAILABLE)

        requested = slot_interval(start, duration)
        conflicts = [
            booking.id
            for booking in await self.active_bookings(db, court_id, booking_date)
            if intervals_overlap(requested, slot_interval(booking.time, booking.duration or 1))
        ]
        if conflicts:
            return SlotCheck(
                court=court,
                allowed=False,
                reason=REASON_SLOT_TAKEN,
                conflicting_booking_ids=conflicts,
            )

        return SlotCheck(court=court, allowed=True)

    async def ensure_bookable(
        self,
        db: AsyncSession,
        court_id: int,
        booking_date: date,
        start: dt_time,
        duration: int = 1,
    ) -> Court:
        """Run the check and raise the matching domain error on denial."""
        outcome = await self.check(db, court_id, booking_date, start, duration)

        if outcome.reason == REASON_COURT_UNAVAILABLE:
            raise CourtUnavailableException(court_id, outcome.court.status)
        if outcome.reason == REASON_SLOT_TAKEN:
            logger.info(
                f"Slot taken on court {court_id} at {booking_date} {start:%H:%M} "
                f"(conflicts: {outcome.conflicting_booking_ids})"
            )
            raise SlotTakenException(
                details={
                    "court_id": court_id,
                    "date": booking_date.isoformat(),
                    "time": start.strftime("%H:%M"),
                    "duration": duration,
                    "conflicting_booking_ids": outcome.conflicting_booking_ids,
                }
            )

        return outcome.court

    async def list_free_slots(
        self,
        db: AsyncSession,
        court_id: int,
        booking_date: date,
        duration: int = 1,
    ) -> List[str]:
        """Hourly start times on ``booking_date`` that a booking of ``duration`` could take."""
        court = await self.get_court(db, court_id)
        if court.status != CourtStatus.AVAILABLE.value:
            return []

        window = opening_window(court, booking_date)
        if window is None:
            return []
        close_minutes = to_minutes(parse_hhmm(window[1])) or MINUTES_PER_DAY

        taken = [
            slot_interval(booking.time, booking.duration or 1)
            for booking in await self.active_bookings(db, court_id, booking_date)
        ]

        free = []
        for candidate in generate_slots(window[0], window[1]):
            requested = slot_interval(parse_hhmm(candidate), duration)
            if requested[1] > close_minutes:
                continue
            if any(intervals_overlap(requested, existing) for existing in taken):
                continue
            free.append(candidate)
        return free


# Singleton instance
slot_guard = SlotConflictGuard()
