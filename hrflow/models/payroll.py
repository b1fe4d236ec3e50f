"""
HRFlow - Payroll Model

One payroll per (employee, month, year). The approval workflow lives in the
`approval_flow` JSON document; `current_level` mirrors
`approval_flow["currentLevel"]` so the workflow can guard updates on it.

Approval chain:
    DEPARTMENT_HEAD -> HR_MANAGER -> FINANCE_DIRECTOR -> SUPER_ADMIN -> COMPLETED
Any level may reject, which ends the chain (status REJECTED, no current level).
"""

import uuid
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import (
    ForeignKey, Integer, Numeric, Uuid, UniqueConstraint, CheckConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrflow.models.base import BaseModel, JSONType

if TYPE_CHECKING:
    from hrflow.models.user import User
    from hrflow.models.department import Department


class PayrollStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class ApprovalLevel(str, Enum):
    """Levels of the sign-off chain plus the terminal COMPLETED marker."""
    DEPARTMENT_HEAD = "DEPARTMENT_HEAD"
    HR_MANAGER = "HR_MANAGER"
    FINANCE_DIRECTOR = "FINANCE_DIRECTOR"
    SUPER_ADMIN = "SUPER_ADMIN"
    COMPLETED = "COMPLETED"
    
    @classmethod
    def actionable(cls) -> List["ApprovalLevel"]:
        """Levels at which a decision can be made."""
        return [
            cls.DEPARTMENT_HEAD,
            cls.HR_MANAGER,
            cls.FINANCE_DIRECTOR,
            cls.SUPER_ADMIN,
        ]
    
    @property
    def display_name(self) -> str:
        """DEPARTMENT_HEAD -> Department Head, HR_MANAGER -> HR Manager"""
        return " ".join(word if word == "HR" else word.capitalize() for word in self.value.split("_"))


# Successor table for the approval chain
APPROVAL_CHAIN: Dict[ApprovalLevel, ApprovalLevel] = {
    ApprovalLevel.DEPARTMENT_HEAD: ApprovalLevel.HR_MANAGER,
    ApprovalLevel.HR_MANAGER: ApprovalLevel.FINANCE_DIRECTOR,
    ApprovalLevel.FINANCE_DIRECTOR: ApprovalLevel.SUPER_ADMIN,
    ApprovalLevel.SUPER_ADMIN: ApprovalLevel.COMPLETED,
}

INITIAL_APPROVAL_LEVEL = ApprovalLevel.DEPARTMENT_HEAD

TERMINAL_STATUSES = frozenset({PayrollStatus.COMPLETED, PayrollStatus.REJECTED})


def next_approval_level(level: ApprovalLevel) -> ApprovalLevel:
    """Return the successor of an actionable level."""
    try:
        return APPROVAL_CHAIN[level]
    except KeyError:
        raise ValueError(f"{level} has no successor in the approval chain")


class DecisionStatus(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Decision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class Payroll(BaseModel):
    """Monthly payroll record for one employee."""
    
    __tablename__ = "payrolls"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_payrolls_employee_period"),
        CheckConstraint("month >= 1 AND month <= 12", name="month_range"),
    )
    
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    
    # Computed totals (calculated upstream)
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    
    status: Mapped[PayrollStatus] = mapped_column(
        SQLEnum(PayrollStatus, native_enum=False, length=20),
        default=PayrollStatus.PENDING,
        nullable=False,
        index=True,
    )
    
    # Mirrors approval_flow["currentLevel"]; NULL before submission and after rejection
    current_level: Mapped[Optional[ApprovalLevel]] = mapped_column(
        SQLEnum(ApprovalLevel, native_enum=False, length=32),
        nullable=True,
        index=True,
    )
    
    approval_flow: Mapped[Dict[str, Any]] = mapped_column(
        JSONType,
        default=dict,
        nullable=False,
    )
    
    employee: Mapped["User"] = relationship("User", foreign_keys=[employee_id], lazy="raise")
    department: Mapped[Optional["Department"]] = relationship(
        "Department", foreign_keys=[department_id], lazy="raise"
    )
    
    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
    
    def __repr__(self) -> str:
        return (
            f"<Payroll(id={self.id}, employee={self.employee_id}, "
            f"period={self.month}/{self.year}, status={self.status})>"
        )
