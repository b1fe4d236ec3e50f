"""
HRFlow - Payroll Repository

Persistence contract consumed by the approval workflow:

- find_payroll_by_id(id): hydrated payroll (employee + department joined)
- conditional_update_approval_flow(id, expected_level, patch): single-row
  compare-and-swap on `current_level`; returns the updated payroll or None
  when the stored level no longer matches.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrflow.models.payroll import ApprovalLevel, Payroll, PayrollStatus
from hrflow.schemas.approval import ApprovalFlow
from hrflow.services.views import PayrollView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalFlowPatch:
    """New workflow state written in one conditional update."""
    status: PayrollStatus
    current_level: Optional[ApprovalLevel]
    flow: ApprovalFlow
    
    def values(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "current_level": self.current_level,
            "approval_flow": self.flow.to_document(),
        }


class PayrollRepository:
    """Payroll reads and guarded workflow writes."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def find_payroll_by_id(self, payroll_id: uuid.UUID) -> Optional[PayrollView]:
        result = await self.db.execute(
            select(Payroll)
            .options(
                selectinload(Payroll.employee),
                selectinload(Payroll.department),
            )
            .where(Payroll.id == payroll_id)
            .execution_options(populate_existing=True)
        )
        payroll = result.scalar_one_or_none()
        if payroll is None:
            return None
        return PayrollView.from_model(payroll, payroll.employee, payroll.department)
    
    async def conditional_update_approval_flow(
        self,
        payroll_id: uuid.UUID,
        expected_level: Optional[ApprovalLevel],
        patch: ApprovalFlowPatch,
        expected_status: PayrollStatus = PayrollStatus.PENDING,
    ) -> Optional[PayrollView]:
        """
        Apply `patch` only if the stored level (and status) still match.
        
        Does not commit; the caller owns the transaction so related writes
        (audit entries) land atomically with the state change.
        """
        level_guard = (
            Payroll.current_level.is_(None)
            if expected_level is None
            else Payroll.current_level == expected_level
        )
        
        result = await self.db.execute(
            update(Payroll)
            .where(
                Payroll.id == payroll_id,
                Payroll.status == expected_status,
                level_guard,
            )
            .values(**patch.values())
            .execution_options(synchronize_session=False)
        )
        
        if result.rowcount != 1:
            logger.info(
                f"Conditional update lost on payroll {payroll_id} "
                f"(expected level {expected_level}, status {expected_status})"
            )
            return None
        
        return await self.find_payroll_by_id(payroll_id)
