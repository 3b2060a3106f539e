"""Court endpoints."""
from datetime import date, time
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.api.deps import get_current_user, require_roles
from courtbook.core.database import get_db
from courtbook.models.court import CourtStatus, CourtSurface, CourtType
from courtbook.models.user import User, UserRole
from courtbook.schemas.court import (
    CourtAvailability,
    CourtCreate,
    CourtFeaturedUpdate,
    CourtInDB,
    CourtSlots,
    CourtUpdate,
)
from courtbook.services.court_service import court_service
from courtbook.services.slot_guard import slot_guard

router = APIRouter(prefix="/courts", tags=["courts"])


@router.post("", response_model=CourtInDB, status_code=201)
async def create_court(
    court: CourtCreate,
    owner: User = Depends(require_roles(UserRole.OWNER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    List a new court.

    Args:
        court: Court details
        owner: Court owner (the caller)
        db: Database session

    Returns:
        Created court
    """
    return await court_service.create_court(db, owner, court)


@router.get("", response_model=List[CourtInDB])
async def list_courts(
    status: Optional[CourtStatus] = None,
    court_type: Optional[CourtType] = None,
    surface: Optional[CourtSurface] = None,
    city: Optional[str] = None,
    featured: Optional[bool] = None,
    min_price: Optional[Decimal] = Query(default=None, ge=0),
    max_price: Optional[Decimal] = Query(default=None, ge=0),
    owner_id: Optional[int] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """
    List courts, featured first.

    Returns:
        List of courts matching the filters
    """
    courts, _ = await court_service.list_courts(
        db,
        status=status,
        court_type=court_type,
        surface=surface,
        city=city,
        featured=featured,
        min_price=min_price,
        max_price=max_price,
        owner_id=owner_id,
        skip=skip,
        limit=limit,
    )
    return courts


@router.get("/{court_id}", response_model=CourtInDB)
async def get_court(
    court_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await court_service.get_court(db, court_id)


@router.get("/{court_id}/availability", response_model=CourtAvailability)
async def check_availability(
    court_id: int,
    date: date,
    time: time,
    duration: int = Query(default=1, ge=1, le=8),
    db: AsyncSession = Depends(get_db),
):
    """
    Check whether a slot can be booked right now.

    The answer is advisory; the slot is only reserved by creating a booking.
    """
    outcome = await slot_guard.check(db, court_id, date, time, duration)
    return CourtAvailability(
        court_id=court_id,
        date=date,
        time=time.strftime("%H:%M"),
        duration=duration,
        available=outcome.allowed,
        reason=outcome.reason,
    )


@router.get("/{court_id}/slots", response_model=CourtSlots)
async def list_free_slots(
    court_id: int,
    date: date,
    duration: int = Query(default=1, ge=1, le=8),
    db: AsyncSession = Depends(get_db),
):
    """Free hourly start times within the court's opening hours."""
    slots = await slot_guard.list_free_slots(db, court_id, date, duration)
    return CourtSlots(court_id=court_id, date=date, duration=duration, slots=slots)


@router.patch("/{court_id}", response_model=CourtInDB)
async def update_court(
    court_id: int,
    court_update: CourtUpdate,
    user: User = Depends(require_roles(UserRole.OWNER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a court's information.

    Owners may only update their own courts.
    """
    return await court_service.update_court(db, user, court_id, court_update)


@router.patch("/{court_id}/featured", response_model=CourtInDB)
async def set_court_featured(
    court_id: int,
    featured: CourtFeaturedUpdate,
    admin: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await court_service.set_featured(db, court_id, featured.is_featured)


@router.delete("/{court_id}", status_code=204)
async def delete_court(
    court_id: int,
    user: User = Depends(require_roles(UserRole.OWNER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a court.

    Courts with active bookings (hold, pending verification or confirmed)
    cannot be deleted.
    """
    await court_service.delete_court(db, user, court_id)
