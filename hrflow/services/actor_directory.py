"""
HRFlow - Actor Directory

Resolves who may act at each approval level:

- DEPARTMENT_HEAD: the configured head of the employee's own department
- HR_MANAGER: an active user in the HR department with an HR-manager title
- FINANCE_DIRECTOR: an active user in the Finance department with a
  finance-director title
- SUPER_ADMIN: an active user holding the super-admin role

Lookups are best effort. When several users qualify the first match (oldest
record) wins; uniqueness of title holders is not enforced anywhere.
A missing department or approver is a normal "not found" (None).
"""

import uuid
from typing import List, Optional, Sequence
import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrflow.config import Settings, settings as default_settings
from hrflow.models.department import Department, DepartmentStatus
from hrflow.models.payroll import ApprovalLevel
from hrflow.models.user import User, UserRole, UserStatus
from hrflow.services.views import DepartmentView, PayrollView, UserView

logger = logging.getLogger(__name__)


class ActorDirectory:
    """Read-only approver lookups."""
    
    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings
    
    async def find_next_approver(
        self,
        level: ApprovalLevel,
        payroll: Optional[PayrollView] = None,
    ) -> Optional[UserView]:
        """
        Return the user authorized to act at `level`, or None.
        
        DEPARTMENT_HEAD needs the payroll to know which department to use.
        """
        if level == ApprovalLevel.DEPARTMENT_HEAD:
            department_id = payroll.department_id if payroll else None
            if department_id is None and payroll and payroll.employee:
                department_id = payroll.employee.department_id
            approver = await self.find_department_head(department_id)
        elif level == ApprovalLevel.HR_MANAGER:
            approver = await self.find_active_user_by_department_and_title_pattern(
                self.config.hr_department_names,
                self.config.hr_manager_titles,
            )
        elif level == ApprovalLevel.FINANCE_DIRECTOR:
            approver = await self.find_active_user_by_department_and_title_pattern(
                self.config.finance_department_names,
                self.config.finance_director_titles,
            )
        elif level == ApprovalLevel.SUPER_ADMIN:
            approver = await self.find_active_user_by_role(UserRole.SUPER_ADMIN)
        else:
            return None
        
        if approver is None:
            logger.info(f"No approver found for level {level.value}")
        else:
            logger.debug(f"Resolved {level.value} approver: {approver.full_name} ({approver.id})")
        return approver
    
    async def find_department_head(self, department_id: Optional[uuid.UUID]) -> Optional[UserView]:
        if department_id is None:
            return None
        
        result = await self.db.execute(
            select(User)
            .join(Department, Department.head_of_department_id == User.id)
            .where(
                Department.id == department_id,
                Department.status == DepartmentStatus.ACTIVE,
                User.status == UserStatus.ACTIVE,
            )
        )
        user = result.scalars().first()
        return UserView.from_model(user) if user else None
    
    async def find_active_department(self, names: Sequence[str]) -> Optional[DepartmentView]:
        result = await self.db.execute(
            select(Department)
            .where(
                Department.name.in_(list(names)),
                Department.status == DepartmentStatus.ACTIVE,
            )
            .order_by(Department.created_at, Department.id)
            .limit(1)
        )
        department = result.scalar_one_or_none()
        return DepartmentView.from_model(department) if department else None
    
    async def find_active_user_by_department_and_title_pattern(
        self,
        department_names: Sequence[str],
        title_patterns: Sequence[str],
    ) -> Optional[UserView]:
        department = await self.find_active_department(department_names)
        if department is None:
            logger.info(f"No active department among {list(department_names)}")
            return None
        
        result = await self.db.execute(
            select(User)
            .where(
                User.department_id == department.id,
                User.status == UserStatus.ACTIVE,
                _position_matches(title_patterns),
            )
            .order_by(User.created_at, User.id)
            .limit(1)
        )
        user = result.scalar_one_or_none()
        return UserView.from_model(user) if user else None
    
    async def find_active_user_by_role(self, role: UserRole) -> Optional[UserView]:
        result = await self.db.execute(
            select(User)
            .where(User.role == role, User.status == UserStatus.ACTIVE)
            .order_by(User.created_at, User.id)
            .limit(1)
        )
        user = result.scalar_one_or_none()
        return UserView.from_model(user) if user else None
    
    async def can_act_at_level(
        self,
        actor: UserView,
        level: ApprovalLevel,
        payroll: PayrollView,
    ) -> bool:
        """Level-specific authority check for the acting user."""
        if not actor.is_active:
            return False
        
        if level == ApprovalLevel.SUPER_ADMIN:
            return actor.role == UserRole.SUPER_ADMIN
        
        if level == ApprovalLevel.DEPARTMENT_HEAD:
            if payroll.department and payroll.department.head_of_department_id == actor.id:
                return True
            employee_department = payroll.department_id or (
                payroll.employee.department_id if payroll.employee else None
            )
            return (
                employee_department is not None
                and actor.department_id == employee_department
                and _title_matches(actor.position, self.config.department_head_titles)
            )
        
        if level == ApprovalLevel.HR_MANAGER:
            names, titles = self.config.hr_department_names, self.config.hr_manager_titles
        elif level == ApprovalLevel.FINANCE_DIRECTOR:
            names, titles = self.config.finance_department_names, self.config.finance_director_titles
        else:
            return False
        
        department = await self.find_active_department(names)
        return (
            department is not None
            and actor.department_id == department.id
            and _title_matches(actor.position, titles)
        )


def _position_matches(title_patterns: Sequence[str]):
    """Case-insensitive substring match of User.position against any title."""
    position = func.lower(func.coalesce(User.position, ""))
    return or_(*[position.contains(title.lower(), autoescape=True) for title in title_patterns])


def _title_matches(position: Optional[str], titles: List[str]) -> bool:
    value = (position or "").lower()
    return any(title.lower() in value for title in titles)
