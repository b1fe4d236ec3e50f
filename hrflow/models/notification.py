"""
HRFlow - Notification Model

Notifications are created as side effects of payroll lifecycle events.
Recipients may only toggle the read flag; retention is handled elsewhere.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from hrflow.models.base import BaseModel, JSONType


class NotificationType(str, Enum):
    """Types of notifications."""
    # Payroll lifecycle
    PAYROLL_CREATED = "PAYROLL_CREATED"
    PAYROLL_SUBMITTED = "PAYROLL_SUBMITTED"
    PAYROLL_APPROVED = "PAYROLL_APPROVED"
    PAYROLL_REJECTED = "PAYROLL_REJECTED"
    PAYROLL_COMPLETED = "PAYROLL_COMPLETED"
    PAYROLL_PAID = "PAYROLL_PAID"
    PAYROLL_DRAFT_CREATED = "PAYROLL_DRAFT_CREATED"
    BANK_DETAILS_REQUIRED = "BANK_DETAILS_REQUIRED"
    BULK_PAYROLL_PROCESSED = "BULK_PAYROLL_PROCESSED"
    
    # Approval workflow
    APPROVAL_REQUIRED = "APPROVAL_REQUIRED"
    APPROVAL_CONFIRMED = "APPROVAL_CONFIRMED"
    REJECTION_CONFIRMED = "REJECTION_CONFIRMED"
    
    # Department-wide
    DEPARTMENT_PAYROLL_APPROVED = "DEPARTMENT_PAYROLL_APPROVED"
    DEPARTMENT_PAYROLL_REJECTED = "DEPARTMENT_PAYROLL_REJECTED"
    DEPARTMENT_PAYROLL_REJECTION_STARTED = "DEPARTMENT_PAYROLL_REJECTION_STARTED"
    DEPARTMENT_PAYROLL_REJECTION_SUMMARY = "DEPARTMENT_PAYROLL_REJECTION_SUMMARY"
    
    # Payments
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_CANCELLED = "PAYMENT_CANCELLED"
    PAYMENT_ARCHIVED = "PAYMENT_ARCHIVED"
    
    # Processing
    PAYROLL_PROCESSING_STARTED = "PAYROLL_PROCESSING_STARTED"
    PAYROLL_PROCESSING_COMPLETED = "PAYROLL_PROCESSING_COMPLETED"
    PAYROLL_PROCESSING_FAILED = "PAYROLL_PROCESSING_FAILED"
    PAYROLL_PROCESSING_WARNING = "PAYROLL_PROCESSING_WARNING"
    PAYROLL_PROCESSING_ERROR = "PAYROLL_PROCESSING_ERROR"
    PAYROLL_PROCESSING_SKIPPED = "PAYROLL_PROCESSING_SKIPPED"
    PAYROLL_PROCESSING_SUMMARY = "PAYROLL_PROCESSING_SUMMARY"
    DEPARTMENT_PAYROLL_PROCESSING_STARTED = "DEPARTMENT_PAYROLL_PROCESSING_STARTED"
    DEPARTMENT_PAYROLL_PROCESSING_COMPLETED = "DEPARTMENT_PAYROLL_PROCESSING_COMPLETED"
    DEPARTMENT_PAYROLL_PROCESSING_FAILED = "DEPARTMENT_PAYROLL_PROCESSING_FAILED"
    DEPARTMENT_PAYROLL_PROCESSING_SUMMARY = "DEPARTMENT_PAYROLL_PROCESSING_SUMMARY"
    MULTIPLE_PAYROLL_PROCESSING_STARTED = "MULTIPLE_PAYROLL_PROCESSING_STARTED"
    MULTIPLE_PAYROLL_PROCESSING_COMPLETED = "MULTIPLE_PAYROLL_PROCESSING_COMPLETED"
    MULTIPLE_PAYROLL_PROCESSING_FAILED = "MULTIPLE_PAYROLL_PROCESSING_FAILED"
    MULTIPLE_PAYROLL_PROCESSING_SUMMARY = "MULTIPLE_PAYROLL_PROCESSING_SUMMARY"
    
    # Errors
    PAYROLL_ERROR_NO_GRADE_LEVEL = "PAYROLL_ERROR_NO_GRADE_LEVEL"
    PAYROLL_ERROR_INCOMPLETE_BANK_DETAILS = "PAYROLL_ERROR_INCOMPLETE_BANK_DETAILS"
    PAYROLL_ERROR_DUPLICATE_PAYROLL = "PAYROLL_ERROR_DUPLICATE_PAYROLL"
    PAYROLL_ERROR_CALCULATION_FAILED = "PAYROLL_ERROR_CALCULATION_FAILED"
    PAYROLL_ERROR_PERMISSION_DENIED = "PAYROLL_ERROR_PERMISSION_DENIED"
    PAYROLL_ERROR_SYSTEM_ERROR = "PAYROLL_ERROR_SYSTEM_ERROR"


class Notification(BaseModel):
    """
    In-app notification for a single recipient.
    
    `data` holds a denormalized snapshot of the payroll/employee at the
    time of the event, for display without further lookups.
    """
    
    __tablename__ = "notifications"
    
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    
    # Payrolls are referenced, not owned; deleting one leaves its notifications
    payroll_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )
    
    notification_type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType, native_enum=False, length=64),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)
    
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.notification_type}, recipient={self.recipient_id})>"
    
    def mark_as_read(self) -> None:
        """Mark notification as read."""
        if not self.is_read:
            self.is_read = True
            self.read_at = datetime.now(timezone.utc)
