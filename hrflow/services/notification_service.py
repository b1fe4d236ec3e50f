"""
HRFlow - Notification Service

Persistent in-app notifications. A notification counts as sent once its
row is committed; there is no separate delivery queue.
"""

import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from hrflow.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for creating and reading notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_notification(
        self,
        recipient_id: uuid.UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        payroll_id: Optional[uuid.UUID] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """
        Create and commit a notification for one recipient.

        Args:
            recipient_id: The user to notify
            notification_type: Type of notification
            title: Notification title
            message: Notification body
            payroll_id: Optional payroll the notification refers to
            data: Snapshot of the event for display
        """
        notification = Notification(
            recipient_id=recipient_id,
            payroll_id=payroll_id,
            notification_type=notification_type,
            title=title,
            message=message,
            data=data or {},
            is_read=False,
        )

        self.db.add(notification)
        await self.db.flush()
        await self.db.refresh(notification)
        await self.db.commit()

        logger.info(f"Notification created for user {recipient_id}: {title}")
        return notification

    async def get_notification_by_id(
        self,
        notification_id: uuid.UUID,
        recipient_id: uuid.UUID,
    ) -> Optional[Notification]:
        """Get a notification by ID, scoped to its recipient."""
        result = await self.db.execute(
            select(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.recipient_id == recipient_id)
        )
        return result.scalar_one_or_none()

    async def get_user_notifications(
        self,
        recipient_id: uuid.UUID,
        unread_only: bool = False,
        payroll_id: Optional[uuid.UUID] = None,
        notification_type: Optional[NotificationType] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Notification], int]:
        """
        Get notifications for a user with optional filters, newest first.

        Returns:
            Tuple of (notifications, total_count)
        """
        conditions = [Notification.recipient_id == recipient_id]
        if unread_only:
            conditions.append(Notification.is_read.is_(False))
        if payroll_id:
            conditions.append(Notification.payroll_id == payroll_id)
        if notification_type:
            conditions.append(Notification.notification_type == notification_type)

        count_result = await self.db.execute(
            select(func.count(Notification.id)).where(*conditions)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Notification)
            .where(*conditions)
            .order_by(Notification.created_at.desc(), Notification.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    async def get_unread_count(self, recipient_id: uuid.UUID) -> int:
        """Get count of unread notifications for a user."""
        result = await self.db.execute(
            select(func.count(Notification.id))
            .where(Notification.recipient_id == recipient_id)
            .where(Notification.is_read.is_(False))
        )
        return result.scalar() or 0

    async def mark_as_read(
        self,
        notification_id: uuid.UUID,
        recipient_id: uuid.UUID,
    ) -> Optional[Notification]:
        """Mark a notification as read. Returns None if the user does not own it."""
        notification = await self.get_notification_by_id(notification_id, recipient_id)

        if not notification:
            return None

        notification.mark_as_read()
        await self.db.commit()
        await self.db.refresh(notification)

        logger.info(f"Notification {notification_id} marked as read")
        return notification

    async def mark_all_as_read(self, recipient_id: uuid.UUID) -> int:
        """Mark all notifications as read for a user."""
        result = await self.db.execute(
            update(Notification)
            .where(Notification.recipient_id == recipient_id)
            .where(Notification.is_read.is_(False))
            .values(is_read=True, read_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )

        await self.db.commit()

        count = result.rowcount
        logger.info(f"Marked {count} notifications as read for user {recipient_id}")
        return count
