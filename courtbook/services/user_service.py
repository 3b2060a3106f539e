"""User account service."""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.exceptions import ConflictException, NotFoundException
from courtbook.core.security import hash_password
from courtbook.models.user import User
from courtbook.schemas.user import UserCreate, UserStatusUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Service for user accounts."""

    async def create_user(self, db: AsyncSession, data: UserCreate) -> User:
        existing = await self.get_by_email(db, data.email)
        if existing:
            raise ConflictException(
                "A user with this email already exists",
                code="EMAIL_TAKEN",
                details={"email": data.email},
            )

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
            role=data.role.value,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            raise ConflictException(
                "A user with this email already exists",
                code="EMAIL_TAKEN",
                details={"email": data.email},
            ) from exc
        await db.refresh(user)

        logger.info(f"User {user.id} registered with role {user.role}")
        return user

    async def get_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def update_status(self, db: AsyncSession, user_id: int, data: UserStatusUpdate) -> User:
        """
        Activate, deactivate or change the role of a user.

        Raises:
            NotFoundException: If the user does not exist
        """
        user = await self.get_by_id(db, user_id)
        if not user:
            raise NotFoundException("User not found", code="USER_NOT_FOUND", details={"user_id": user_id})

        if data.is_active is not None:
            user.is_active = data.is_active
        if data.role is not None:
            user.role = data.role.value
        await db.commit()
        await db.refresh(user)

        logger.info(f"User {user.id} status updated: active={user.is_active}, role={user.role}")
        return user


# Singleton instance
user_service = UserService()
