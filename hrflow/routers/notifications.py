"""
HRFlow - Notifications Router

API endpoints for the current user's notifications.

Features:
- List notifications with filtering
- Unread count
- Mark as read (single/all)

Notifications are created by the approval workflow; there is no create
or delete endpoint.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrflow.database import get_async_session
from hrflow.dependencies import get_current_active_user
from hrflow.models.notification import NotificationType
from hrflow.schemas.notification import (
    MessageResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from hrflow.services.notification_service import NotificationService
from hrflow.services.views import UserView
from hrflow.utils.error_handling import ErrorCode, NotFoundException


router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications",
    description="Get notifications for the current user, newest first.",
)
async def list_notifications(
    unread_only: bool = Query(False, description="Only unread notifications"),
    notification_type: Optional[NotificationType] = Query(None, description="Filter by notification type"),
    payroll_id: Optional[uuid.UUID] = Query(None, description="Filter by payroll"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: UserView = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """List notifications for the current user."""
    service = NotificationService(db)

    notifications, total = await service.get_user_notifications(
        recipient_id=current_user.id,
        unread_only=unread_only,
        payroll_id=payroll_id,
        notification_type=notification_type,
        limit=limit,
        offset=offset,
    )
    unread_count = await service.get_unread_count(current_user.id)

    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        unread_count=unread_count,
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
)
async def get_unread_count(
    current_user: UserView = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    service = NotificationService(db)
    return UnreadCountResponse(unread_count=await service.get_unread_count(current_user.id))


@router.post(
    "/read-all",
    response_model=MessageResponse,
    summary="Mark all notifications as read",
)
async def mark_all_as_read(
    current_user: UserView = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Mark all notifications as read."""
    service = NotificationService(db)
    count = await service.mark_all_as_read(current_user.id)
    return MessageResponse(message=f"Marked {count} notifications as read")


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark notification as read",
    description="Mark a single notification as read. Only its recipient may do this.",
)
async def mark_as_read(
    notification_id: uuid.UUID,
    current_user: UserView = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Mark a notification as read."""
    service = NotificationService(db)

    notification = await service.mark_as_read(
        notification_id=notification_id,
        recipient_id=current_user.id,
    )

    if notification is None:
        raise NotFoundException("Notification", notification_id, code=ErrorCode.NOTIFICATION_NOT_FOUND)

    return NotificationResponse.model_validate(notification)
