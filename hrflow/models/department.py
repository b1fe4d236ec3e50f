"""
HRFlow - Department Model
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrflow.models.base import BaseModel

if TYPE_CHECKING:
    from hrflow.models.user import User


class DepartmentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Department(BaseModel):
    """Organizational department with an optional configured head."""
    
    __tablename__ = "departments"
    
    name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status: Mapped[DepartmentStatus] = mapped_column(
        SQLEnum(DepartmentStatus),
        default=DepartmentStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    
    head_of_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
    )
    
    members: Mapped[List["User"]] = relationship(
        "User",
        foreign_keys="User.department_id",
        back_populates="department",
        lazy="raise",
    )
    
    def __repr__(self) -> str:
        return f"<Department(id={self.id}, name={self.name})>"
