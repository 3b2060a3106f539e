"""Shared endpoint dependencies."""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.clock import Clock, get_clock
from courtbook.core.database import get_db
from courtbook.core.exceptions import ForbiddenException, UnauthorizedException
from courtbook.models.user import User, UserRole
from courtbook.services.booking_service import BookingService
from courtbook.services.scheduler import ExpirySweeper
from courtbook.services.tournament_service import TournamentService
from courtbook.services.user_service import user_service


async def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the caller from the ``X-User-Id`` header.

    The authenticating gateway in front of this service sets the header
    after validating the session token.
    """
    if x_user_id is None:
        raise UnauthorizedException("Access denied. No user identity provided.", code="NOT_AUTHENTICATED")

    user = await user_service.get_by_id(db, x_user_id)
    if not user:
        raise UnauthorizedException("Invalid user identity.", code="NOT_AUTHENTICATED")
    if not user.is_active:
        raise UnauthorizedException("Account is deactivated.", code="ACCOUNT_DEACTIVATED")
    return user


def require_roles(*roles: UserRole):
    """Build a dependency that only lets the given roles through."""
    allowed = {role.value for role in roles}

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise ForbiddenException(
                "You do not have permission to perform this action",
                code="FORBIDDEN",
                details={"required_roles": sorted(allowed)},
            )
        return user

    return dependency


def get_booking_service(clock: Clock = Depends(get_clock)) -> BookingService:
    return BookingService(clock=clock)


def get_expiry_sweeper(service: BookingService = Depends(get_booking_service)) -> ExpirySweeper:
    return ExpirySweeper(service=service)


def get_tournament_service(clock: Clock = Depends(get_clock)) -> TournamentService:
    return TournamentService(clock=clock)
