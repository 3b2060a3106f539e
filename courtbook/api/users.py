"""User and notification endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.api.deps import get_current_user, require_roles
from courtbook.core.database import get_db
from courtbook.models.user import User, UserRole
from courtbook.schemas.notification import NotificationInDB
from courtbook.schemas.user import UserCreate, UserInDB, UserStatusUpdate
from courtbook.services.notification_service import notification_service
from courtbook.services.user_service import user_service

router = APIRouter(tags=["users"])


@router.post("/users", response_model=UserInDB, status_code=201)
async def register_user(
    user: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a user account. The password is stored only as a salted hash."""
    return await user_service.create_user(db, user)


@router.get("/users/me", response_model=UserInDB)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.patch("/users/{user_id}/status", response_model=UserInDB)
async def update_user_status(
    user_id: int,
    status: UserStatusUpdate,
    admin: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Activate or deactivate a user, or change their role.

    Deactivated users are refused on every authenticated endpoint.
    """
    return await user_service.update_status(db, user_id, status)


@router.get("/notifications", response_model=List[NotificationInDB])
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.list_for_user(db, user.id, unread_only=unread_only, limit=limit)


@router.patch("/notifications/{notification_id}/read", response_model=NotificationInDB)
async def mark_notification_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.mark_read(db, user.id, notification_id)
