"""Notification service for booking and tournament events."""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.exceptions import NotFoundException
from courtbook.models.notification import Notification, NotificationType
from courtbook.models.user import User, UserRole

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for creating and reading notifications."""

    async def notify(
        self,
        db: AsyncSession,
        user_ids: Iterable[int],
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        priority: str = "medium",
    ) -> int:
        """
        Record a notification for each user.

        Delivery is best effort: failures are logged and rolled back so the
        caller's already-committed state change is never affected.

        Returns:
            Number of notifications written
        """
        recipients = [user_id for user_id in user_ids if user_id is not None]
        if not recipients:
            return 0

        try:
            for user_id in recipients:
                db.add(
                    Notification(
                        user_id=user_id,
                        type=type.value,
                        title=title,
                        message=message,
                        priority=priority,
                        data=data or {},
                    )
                )
            await db.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to record '{title}' notification for users {recipients}: {e}")
            await db.rollback()
            return 0

        return len(recipients)

    async def admin_ids(self, db: AsyncSession) -> List[int]:
        """Ids of all active admins."""
        result = await db.execute(
            select(User.id).where(User.role == UserRole.ADMIN.value, User.is_active.is_(True))
        )
        return list(result.scalars().all())

    async def list_for_user(
        self, db: AsyncSession, user_id: int, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        result = await db.execute(
            query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def mark_read(self, db: AsyncSession, user_id: int, notification_id: int) -> Notification:
        result = await db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotFoundException(
                "Notification not found",
                code="NOTIFICATION_NOT_FOUND",
                details={"notification_id": notification_id},
            )

        notification.read = True
        await db.commit()
        return notification


# Singleton instance
notification_service = NotificationService()
