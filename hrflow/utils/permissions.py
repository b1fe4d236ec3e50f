"""
HRFlow - Permissions System

Role-based permissions. Level-specific approval authority (department,
position) is checked separately by the actor directory.

| Permission          | Super Admin | Admin | User |
|---------------------|-------------|-------|------|
| approve_payroll     | X           | X     |      |
| submit_payroll      | X           | X     |      |
| view_payroll        | X           | X     |      |
| view_notifications  | X           | X     | X    |
"""

from enum import Enum
from typing import Dict, Set

from hrflow.models.user import UserRole


class Permission(str, Enum):
    APPROVE_PAYROLL = "approve_payroll"
    SUBMIT_PAYROLL = "submit_payroll"
    VIEW_PAYROLL = "view_payroll"
    VIEW_NOTIFICATIONS = "view_notifications"


ROLE_PERMISSIONS: Dict[UserRole, Set[Permission]] = {
    UserRole.SUPER_ADMIN: set(Permission),
    UserRole.ADMIN: {
        Permission.APPROVE_PAYROLL,
        Permission.SUBMIT_PAYROLL,
        Permission.VIEW_PAYROLL,
        Permission.VIEW_NOTIFICATIONS,
    },
    UserRole.USER: {
        Permission.VIEW_NOTIFICATIONS,
    },
}


def has_permission(role: UserRole, permission: Permission) -> bool:
    """Check if a role grants a permission."""
    return permission in ROLE_PERMISSIONS.get(role, set())
