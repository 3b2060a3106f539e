"""Court listing service."""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.exceptions import CourtHasActiveBookingsException, CourtNotFoundException
from courtbook.models.booking import ACTIVE_BOOKING_STATUSES, Booking
from courtbook.models.court import Court, CourtStatus, CourtSurface, CourtType
from courtbook.models.user import User, UserRole
from courtbook.schemas.court import CourtCreate, CourtUpdate

logger = logging.getLogger(__name__)


class CourtService:
    """Service for managing court listings."""

    async def create_court(self, db: AsyncSession, owner: User, data: CourtCreate) -> Court:
        court_data = data.model_dump(mode="json")
        court_data["price_per_hour"] = data.price_per_hour
        court = Court(owner_id=owner.id, **court_data)
        db.add(court)
        await db.commit()
        await db.refresh(court)

        logger.info(f"Court {court.id} ({court.name}) created by owner {owner.id}")
        return court

    async def get_court(self, db: AsyncSession, court_id: int) -> Court:
        result = await db.execute(select(Court).where(Court.id == court_id))
        court = result.scalar_one_or_none()
        if not court:
            raise CourtNotFoundException(court_id)
        return court

    async def get_managed_court(self, db: AsyncSession, user: User, court_id: int) -> Court:
        """Court the user may modify: their own, or any court for admins."""
        court = await self.get_court(db, court_id)
        if user.role != UserRole.ADMIN.value and court.owner_id != user.id:
            # Indistinguishable from a missing court for non-owners
            raise CourtNotFoundException(court_id)
        return court

    async def list_courts(
        self,
        db: AsyncSession,
        status: Optional[CourtStatus] = None,
        court_type: Optional[CourtType] = None,
        surface: Optional[CourtSurface] = None,
        city: Optional[str] = None,
        featured: Optional[bool] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        owner_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Court], int]:
        query = select(Court)
        if status is not None:
            query = query.where(Court.status == status.value)
        if court_type is not None:
            query = query.where(Court.court_type == court_type.value)
        if surface is not None:
            query = query.where(Court.surface == surface.value)
        if city:
            query = query.where(func.lower(Court.city) == city.lower())
        if featured is not None:
            query = query.where(Court.is_featured.is_(featured))
        if min_price is not None:
            query = query.where(Court.price_per_hour >= min_price)
        if max_price is not None:
            query = query.where(Court.price_per_hour <= max_price)
        if owner_id is not None:
            query = query.where(Court.owner_id == owner_id)

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
        result = await db.execute(
            query.order_by(Court.is_featured.desc(), Court.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    async def update_court(
        self, db: AsyncSession, user: User, court_id: int, data: CourtUpdate
    ) -> Court:
        court = await self.get_managed_court(db, user, court_id)

        update_data = data.model_dump(mode="json", exclude_unset=True)
        if "price_per_hour" in update_data:
            update_data["price_per_hour"] = data.price_per_hour
        for field, value in update_data.items():
            setattr(court, field, value)

        await db.commit()
        await db.refresh(court)
        return court

    async def set_featured(self, db: AsyncSession, court_id: int, is_featured: bool) -> Court:
        court = await self.get_court(db, court_id)
        court.is_featured = is_featured
        await db.commit()
        await db.refresh(court)
        return court

    async def count_active_bookings(self, db: AsyncSession, court_id: int) -> int:
        result = await db.execute(
            select(func.count(Booking.id)).where(
                Booking.court_id == court_id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
        )
        return result.scalar_one()

    async def delete_court(self, db: AsyncSession, user: User, court_id: int) -> None:
        """
        Delete a court.

        Past bookings on the court are kept and detached from it.

        Raises:
            CourtNotFoundException: If the court is missing or not the caller's
            CourtHasActiveBookingsException: If any booking still occupies a slot
        """
        court = await self.get_managed_court(db, user, court_id)

        active = await self.count_active_bookings(db, court_id)
        if active > 0:
            raise CourtHasActiveBookingsException(court_id, active)

        detached = await db.execute(
            update(Booking)
            .where(Booking.court_id == court_id)
            .values(court_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.delete(court)
        await db.commit()
        logger.info(f"Court {court_id} deleted by user {user.id}, {detached.rowcount} past bookings kept")


# Singleton instance
court_service = CourtService()
