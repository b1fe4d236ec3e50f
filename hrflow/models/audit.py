"""
HRFlow - Audit Log Model

Append-only record of payroll workflow actions.
"""

import uuid
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from hrflow.models.base import BaseModel, JSONType


class AuditAction(str, Enum):
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class AuditLog(BaseModel):
    """Audit trail entry, written in the same transaction as the change it records."""
    
    __tablename__ = "audit_logs"
    
    action: Mapped[AuditAction] = mapped_column(
        SQLEnum(AuditAction, native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    entity: Mapped[str] = mapped_column(String(50), nullable=False, default="PAYROLL")
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    performed_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    details: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)
