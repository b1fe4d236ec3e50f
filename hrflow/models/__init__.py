"""
HRFlow - Database Models
"""

from hrflow.models.base import BaseModel, TimestampMixin
from hrflow.models.user import User, UserRole, UserStatus
from hrflow.models.department import Department, DepartmentStatus
from hrflow.models.payroll import (
    Payroll,
    PayrollStatus,
    ApprovalLevel,
    APPROVAL_CHAIN,
    INITIAL_APPROVAL_LEVEL,
    TERMINAL_STATUSES,
    Decision,
    DecisionStatus,
    next_approval_level,
)
from hrflow.models.notification import Notification, NotificationType
from hrflow.models.audit import AuditLog, AuditAction

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "User",
    "UserRole",
    "UserStatus",
    "Department",
    "DepartmentStatus",
    "Payroll",
    "PayrollStatus",
    "ApprovalLevel",
    "APPROVAL_CHAIN",
    "INITIAL_APPROVAL_LEVEL",
    "TERMINAL_STATUSES",
    "Decision",
    "DecisionStatus",
    "next_approval_level",
    "Notification",
    "NotificationType",
    "AuditLog",
    "AuditAction",
]
