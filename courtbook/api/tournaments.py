"""Tournament endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.api.deps import get_current_user, get_tournament_service, require_roles
from courtbook.core.database import get_db
from courtbook.models.tournament import TournamentStatus
from courtbook.models.user import User, UserRole
from courtbook.schemas.tournament import (
    RegistrationCreate,
    RegistrationInDB,
    RegistrationPaymentUpdate,
    TournamentCreate,
    TournamentInDB,
    TournamentStatusUpdate,
    TournamentUpdate,
)
from courtbook.services.tournament_service import TournamentService

router = APIRouter(tags=["tournaments"])

require_organizer = require_roles(UserRole.ORGANIZER, UserRole.ADMIN)


@router.post("/tournaments", response_model=TournamentInDB, status_code=201)
async def create_tournament(
    tournament: TournamentCreate,
    organizer: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    """Create a tournament. It stays hidden until an admin approves it."""
    return await service.create_tournament(db, organizer, tournament)


@router.get("/tournaments", response_model=List[TournamentInDB])
async def list_tournaments(
    status: Optional[TournamentStatus] = TournamentStatus.UPCOMING,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    return await service.list_tournaments(db, status=status, skip=skip, limit=limit)


@router.get("/tournaments/{tournament_id}", response_model=TournamentInDB)
async def get_tournament(
    tournament_id: int,
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    return await service.get_tournament(db, tournament_id)


@router.patch("/tournaments/{tournament_id}", response_model=TournamentInDB)
async def update_tournament(
    tournament_id: int,
    tournament: TournamentUpdate,
    organizer: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Edit an upcoming tournament.

    The tournament is hidden again until an admin re-approves it.
    """
    return await service.update_tournament(db, organizer, tournament_id, tournament)


@router.patch("/tournaments/{tournament_id}/status", response_model=TournamentInDB)
async def change_tournament_status(
    tournament_id: int,
    update: TournamentStatusUpdate,
    organizer: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    return await service.change_status(db, organizer, tournament_id, update.status)


@router.delete("/tournaments/{tournament_id}", status_code=204)
async def delete_tournament(
    tournament_id: int,
    organizer: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    await service.delete_tournament(db, organizer, tournament_id)


@router.put("/tournaments/{tournament_id}/approve", response_model=TournamentInDB)
async def approve_tournament(
    tournament_id: int,
    admin: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    return await service.approve_tournament(db, tournament_id)


@router.post(
    "/tournaments/{tournament_id}/registrations",
    response_model=RegistrationInDB,
    status_code=201,
)
async def register_for_tournament(
    tournament_id: int,
    registration: RegistrationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Register for a tournament.

    Each email can register once per tournament.
    """
    return await service.register(db, user, tournament_id, registration)


@router.get("/tournaments/{tournament_id}/registrations", response_model=List[RegistrationInDB])
async def list_registrations(
    tournament_id: int,
    organizer: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    return await service.list_registrations(db, organizer, tournament_id)


@router.patch("/registrations/{registration_id}/payment", response_model=RegistrationInDB)
async def update_registration_payment(
    registration_id: int,
    payment: RegistrationPaymentUpdate,
    organizer: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    service: TournamentService = Depends(get_tournament_service),
):
    return await service.update_payment(db, organizer, registration_id, payment)
