"""
HRFlow - Hydrated Views

Plain snapshots of ORM rows handed between the workflow components.
They stay valid after the session commits or rolls back, so notification
failures never leave the workflow holding expired instances.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from hrflow.models.department import Department
from hrflow.models.payroll import ApprovalLevel, Payroll, PayrollStatus, TERMINAL_STATUSES
from hrflow.models.user import User, UserRole, UserStatus
from hrflow.schemas.approval import ApprovalFlow


@dataclass(frozen=True)
class UserView:
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    role: UserRole
    status: UserStatus
    position: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    
    @classmethod
    def from_model(cls, user: User) -> "UserView":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            status=user.status,
            position=user.position,
            department_id=user.department_id,
        )
    
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
    
    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
    
    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.full_name,
            "email": self.email,
            "position": self.position,
        }


@dataclass(frozen=True)
class DepartmentView:
    id: uuid.UUID
    name: str
    code: Optional[str] = None
    head_of_department_id: Optional[uuid.UUID] = None
    
    @classmethod
    def from_model(cls, department: Department) -> "DepartmentView":
        return cls(
            id=department.id,
            name=department.name,
            code=department.code,
            head_of_department_id=department.head_of_department_id,
        )


@dataclass(frozen=True)
class PayrollView:
    """A payroll joined with its employee and department."""
    id: uuid.UUID
    employee_id: uuid.UUID
    department_id: Optional[uuid.UUID]
    month: int
    year: int
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    status: PayrollStatus
    current_level: Optional[ApprovalLevel]
    flow: ApprovalFlow
    employee: Optional[UserView] = None
    department: Optional[DepartmentView] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    
    @classmethod
    def from_model(cls, payroll: Payroll, employee: Optional[User] = None, department: Optional[Department] = None) -> "PayrollView":
        return cls(
            id=payroll.id,
            employee_id=payroll.employee_id,
            department_id=payroll.department_id,
            month=payroll.month,
            year=payroll.year,
            gross_pay=payroll.gross_pay,
            total_deductions=payroll.total_deductions,
            net_pay=payroll.net_pay,
            status=payroll.status,
            current_level=payroll.current_level,
            flow=ApprovalFlow.from_document(payroll.approval_flow),
            employee=UserView.from_model(employee) if employee is not None else None,
            department=DepartmentView.from_model(department) if department is not None else None,
        )
    
    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
    
    @property
    def period(self) -> str:
        return f"{self.month}/{self.year}"
    
    @property
    def employee_name(self) -> str:
        return self.employee.full_name if self.employee else "Unknown employee"
    
    @property
    def department_name(self) -> str:
        return self.department.name if self.department else "No Department"
    
    def to_response(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "department_id": self.department_id,
            "month": self.month,
            "year": self.year,
            "gross_pay": self.gross_pay,
            "total_deductions": self.total_deductions,
            "net_pay": self.net_pay,
            "status": self.status,
            "approval_flow": self.flow.to_document(),
            "employee": self.employee.summary() if self.employee else None,
        }
