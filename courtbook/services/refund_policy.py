"""Cancellation and refund policy for confirmed bookings."""
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import pytz

from courtbook.core.config import settings
from courtbook.models.booking import Booking, BookingStatus

CENTS = Decimal("0.01")


def booking_start_utc(booking_date: date, start: dt_time, tz_name: Optional[str] = None) -> datetime:
    """
    Start instant of a slot.

    Booking dates and times are wall-clock values in the configured booking
    timezone; this localizes them and converts to UTC.
    """
    tz = pytz.timezone(tz_name or settings.BOOKING_TIMEZONE)
    local_start = tz.localize(datetime.combine(booking_date, start.replace(second=0, microsecond=0)))
    return local_start.astimezone(timezone.utc)


@dataclass(frozen=True)
class RefundDecision:
    cancellable: bool
    hours_until_start: float
    refund_amount: Decimal
    policy_basis: str


class RefundPolicy:
    """
    Refund rules keyed on hours until the booking starts.

    - more than ``full_refund_hours``: full refund
    - more than ``cutoff_hours``: ``partial_ratio`` of the amount
    - otherwise the booking cannot be cancelled
    """

    def __init__(
        self,
        cutoff_hours: float = settings.CANCELLATION_CUTOFF_HOURS,
        full_refund_hours: float = settings.FULL_REFUND_HOURS,
        partial_ratio: float = settings.PARTIAL_REFUND_RATIO,
        tz_name: Optional[str] = None,
    ):
        self.cutoff_hours = cutoff_hours
        self.full_refund_hours = full_refund_hours
        self.partial_ratio = Decimal(str(partial_ratio))
        self.tz_name = tz_name

    def hours_until_start(self, booking: Booking, now: datetime) -> float:
        start = booking_start_utc(booking.date, booking.time, self.tz_name)
        return (start - now).total_seconds() / 3600

    def can_cancel(self, booking: Booking, now: datetime) -> bool:
        return (
            booking.status == BookingStatus.CONFIRMED.value
            and self.hours_until_start(booking, now) > self.cutoff_hours
        )

    def refund_for(self, total_amount: Decimal, hours_until_start: float) -> Decimal:
        total_amount = Decimal(total_amount)
        if hours_until_start > self.full_refund_hours:
            refund = total_amount
        elif hours_until_start > self.cutoff_hours:
            refund = total_amount * self.partial_ratio
        else:
            refund = Decimal("0")
        return refund.quantize(CENTS, rounding=ROUND_HALF_UP)

    def evaluate(self, booking: Booking, now: datetime) -> RefundDecision:
        hours = self.hours_until_start(booking, now)

        if booking.status != BookingStatus.CONFIRMED.value:
            return RefundDecision(False, hours, Decimal("0.00"), f"Status '{booking.status}' is not cancellable")
        if hours <= self.cutoff_hours:
            return RefundDecision(
                False, hours, Decimal("0.00"), f"Less than {self.cutoff_hours:g} hours before start"
            )

        refund = self.refund_for(booking.total_amount, hours)
        if hours > self.full_refund_hours:
            basis = f"More than {self.full_refund_hours:g} hours before start: full refund"
        else:
            basis = f"{self.cutoff_hours:g}-{self.full_refund_hours:g} hours before start: partial refund"
        return RefundDecision(True, hours, refund, basis)


# Singleton instance
refund_policy = RefundPolicy()
