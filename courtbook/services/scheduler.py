"""Background scheduler that expires stale booking holds."""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.config import settings
from courtbook.core.database import AsyncSessionLocal
from courtbook.services.booking_service import BookingService, booking_service

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Periodically moves holds past their deadline to expired."""

    def __init__(
        self,
        service: BookingService = booking_service,
        interval_seconds: int = settings.SWEEP_INTERVAL_SECONDS,
    ):
        """Initialize the scheduler."""
        self.service = service
        self.interval_seconds = interval_seconds
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Expiry sweeper is already running")
            return

        logger.info(f"Starting expiry sweeper (every {self.interval_seconds}s)")

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._tick,
            IntervalTrigger(seconds=self.interval_seconds),
            id="expire_holds_job",
            name="Expire overdue booking holds",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )

        self.scheduler.start()
        self.running = True
        logger.info("Expiry sweeper started")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping expiry sweeper")
        self.scheduler.shutdown(wait=False)
        self.scheduler = None
        self.running = False
        logger.info("Expiry sweeper stopped")

    async def _tick(self):
        """Scheduled job: run one sweep in its own session."""
        async with AsyncSessionLocal() as db:
            try:
                await self.sweep(db)
            except Exception as e:
                logger.error(f"Error in expiry sweep: {e}", exc_info=True)

    async def sweep(self, db: AsyncSession) -> int:
        """
        Expire every hold whose deadline has passed.

        Each booking is updated and committed on its own; a failure is
        logged and the sweep moves on to the next booking.

        Args:
            db: Database session

        Returns:
            Number of bookings transitioned to expired
        """
        now = self.service.clock.now()
        overdue = await self.service.find_overdue_hold_ids(db, now)
        if not overdue:
            logger.debug("No overdue holds")
            return 0

        expired = 0
        for booking_id in overdue:
            try:
                if await self.service.expire_booking(db, booking_id, now):
                    expired += 1
            except Exception as e:
                logger.error(f"Failed to expire booking {booking_id}: {e}", exc_info=True)
                await db.rollback()

        logger.info(f"Expired {expired} of {len(overdue)} overdue holds")
        return expired


# Singleton instance
expiry_sweeper = ExpirySweeper()
