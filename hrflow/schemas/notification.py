"""
HRFlow - Notification Schemas
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from hrflow.models.notification import NotificationType


class NotificationResponse(BaseModel):
    """Schema for notification response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    recipient_id: uuid.UUID
    payroll_id: Optional[uuid.UUID] = None
    notification_type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = {}
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Schema for notification list response."""
    notifications: List[NotificationResponse]
    total: int
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
    success: bool = True
