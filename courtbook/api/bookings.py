"""Booking endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.api.deps import get_booking_service, get_current_user, get_expiry_sweeper, require_roles
from courtbook.core.database import get_db
from courtbook.models.booking import BookingStatus
from courtbook.models.user import User, UserRole
from courtbook.schemas.booking import (
    AdminBookingCreate,
    BookingCancel,
    BookingCreate,
    BookingInDB,
    BookingList,
    BookingStats,
    BookingVerify,
    Pagination,
    PaymentProofUpload,
    SweepResult,
)
from courtbook.services.booking_service import BookingService, page_count
from courtbook.services.scheduler import ExpirySweeper

router = APIRouter(prefix="/bookings", tags=["bookings"])

require_admin = require_roles(UserRole.ADMIN)


@router.post("", response_model=BookingInDB, status_code=201)
async def create_booking(
    booking: BookingCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    """
    Place a hold on a court slot.

    The hold lasts ten minutes; upload payment proof before it expires.
    """
    return await service.create_hold(db, user, booking)


@router.get("", response_model=BookingList)
async def list_bookings(
    status: Optional[BookingStatus] = None,
    court_id: Optional[int] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    """
    List bookings visible to the caller.

    Players see their own bookings, owners also see bookings on their
    courts, admins see everything.
    """
    bookings, total = await service.list_bookings(
        db, user, status=status, court_id=court_id, page=page, limit=limit
    )
    return BookingList(
        data=bookings,
        pagination=Pagination(current=page, pages=page_count(total, limit), total=total, limit=limit),
    )


@router.get("/stats", response_model=BookingStats)
async def get_booking_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    """Booking counts per status and confirmed revenue."""
    return await service.get_stats(db, user)


@router.post("/admin", response_model=BookingInDB, status_code=201)
async def admin_create_booking(
    booking: AdminBookingCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    """Create a confirmed booking on behalf of a user."""
    return await service.admin_create_booking(db, booking)


@router.post("/expire-holds", response_model=SweepResult)
async def expire_holds(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    sweeper: ExpirySweeper = Depends(get_expiry_sweeper),
):
    """Run one expiry sweep immediately."""
    return SweepResult(expired=await sweeper.sweep(db))


@router.get("/{booking_id}", response_model=BookingInDB)
async def get_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_booking(db, user, booking_id)


@router.put("/{booking_id}/payment-proof", response_model=BookingInDB)
async def upload_payment_proof(
    booking_id: int,
    proof: PaymentProofUpload,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    """Attach payment proof to a held booking."""
    return await service.attach_payment_proof(db, user, booking_id, proof.payment_proof_url)


@router.put("/{booking_id}/verify", response_model=BookingInDB)
async def verify_booking(
    booking_id: int,
    verification: BookingVerify,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    """Approve or reject a booking's payment proof."""
    return await service.verify(db, booking_id, verification.action)


@router.put("/{booking_id}/cancel", response_model=BookingInDB)
async def cancel_booking(
    booking_id: int,
    cancellation: BookingCancel,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    """
    Cancel a confirmed booking.

    More than 24 hours before start refunds in full, more than 2 hours
    refunds half; later cancellations are rejected.
    """
    return await service.cancel(db, user, booking_id, cancellation.reason)


@router.delete("/{booking_id}", status_code=204)
async def delete_booking(
    booking_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    service: BookingService = Depends(get_booking_service),
):
    await service.delete_booking(db, booking_id)
