"""
HRFlow - Payroll Approval State Machine

    DEPARTMENT_HEAD -> HR_MANAGER -> FINANCE_DIRECTOR -> SUPER_ADMIN -> COMPLETED
                \___________\______________\_______________\__-> REJECTED

Each decision is one conditional update of the payroll row guarded on the
level the caller saw. Of two concurrent decisions at the same level exactly
one commits; the other gets a conflict. The decision record, history entry,
status fields and audit entry are committed together.

The state machine does not resolve approvers or send notifications. It
returns a TransitionResult for the workflow service to dispatch.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrflow.config import settings
from hrflow.models.audit import AuditAction, AuditLog
from hrflow.models.payroll import (
    ApprovalLevel,
    Decision,
    DecisionStatus,
    INITIAL_APPROVAL_LEVEL,
    PayrollStatus,
    next_approval_level,
)
from hrflow.schemas.approval import ApprovalFlow, DecisionRecord
from hrflow.services.payroll_repository import ApprovalFlowPatch, PayrollRepository
from hrflow.services.views import PayrollView, UserView
from hrflow.utils.error_handling import (
    AppException,
    InvalidApprovalLevelException,
    InvalidTransitionException,
    MissingReasonException,
    PayrollNotFoundException,
    ReasonTooLongException,
    StaleApprovalLevelException,
    ValidationException,
    WorkflowExecutionException,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one committed decision."""
    payroll: PayrollView
    previous_level: ApprovalLevel
    new_level: Optional[ApprovalLevel]
    actor: UserView
    decision: Decision
    reason: str
    decided_at: datetime
    
    @property
    def is_approval(self) -> bool:
        return self.decision == Decision.APPROVE
    
    @property
    def is_completed(self) -> bool:
        return self.new_level == ApprovalLevel.COMPLETED
    
    @property
    def awaits_next_approver(self) -> bool:
        return self.is_approval and not self.is_completed


@dataclass(frozen=True)
class SubmissionResult:
    payroll: PayrollView
    submitted_by: UserView
    submitted_at: datetime


def parse_approval_level(level: Union[ApprovalLevel, str, None]) -> ApprovalLevel:
    """Accept an ApprovalLevel, its value, or the kebab-case URL form."""
    if isinstance(level, ApprovalLevel):
        candidate = level
    else:
        try:
            candidate = ApprovalLevel(str(level).strip().upper().replace("-", "_"))
        except ValueError:
            raise InvalidApprovalLevelException(level)
    
    if candidate not in ApprovalLevel.actionable():
        raise InvalidApprovalLevelException(level)
    return candidate


def parse_decision(decision: Union[Decision, str]) -> Decision:
    try:
        return decision if isinstance(decision, Decision) else Decision(str(decision).upper())
    except ValueError:
        raise ValidationException(f"Invalid decision: {decision}", field="decision")


class ApprovalStateMachine:
    """Validates and applies approval decisions."""
    
    def __init__(
        self,
        db: AsyncSession,
        repository: Optional[PayrollRepository] = None,
        reason_max_length: Optional[int] = None,
    ):
        self.db = db
        self.repository = repository or PayrollRepository(db)
        self.reason_max_length = reason_max_length or settings.rejection_reason_max_length
    
    def validate_reason(self, decision: Decision, reason: Optional[str]) -> str:
        cleaned = (reason or "").strip()
        if decision == Decision.REJECT and not cleaned:
            raise MissingReasonException()
        if len(cleaned) > self.reason_max_length:
            raise ReasonTooLongException(len(cleaned), self.reason_max_length)
        return cleaned
    
    @staticmethod
    def compute_transition(
        flow: ApprovalFlow,
        level: ApprovalLevel,
        actor_id: uuid.UUID,
        decision: Decision,
        reason: str,
        decided_at: datetime,
    ) -> ApprovalFlowPatch:
        """Pure transition function: current flow + decision -> new state."""
        if decision == Decision.APPROVE:
            new_level = next_approval_level(level)
            if new_level == ApprovalLevel.COMPLETED:
                status = PayrollStatus.COMPLETED
                status_message = "Approval Completed"
                pending_level = None
            else:
                status = PayrollStatus.PENDING
                status_message = f"Pending {new_level.value} Approval"
                pending_level = new_level
            record_status = DecisionStatus.APPROVED
        else:
            new_level = None
            status = PayrollStatus.REJECTED
            status_message = f"Rejected at {level.value}"
            pending_level = None
            record_status = DecisionStatus.REJECTED
        
        record = DecisionRecord(
            status=record_status,
            approved_by=actor_id,
            approved_at=decided_at,
            reason=reason,
        )
        new_flow = flow.with_decision(
            level,
            record,
            current_level=new_level,
            next_approval_level=pending_level,
            status_message=status_message,
        )
        return ApprovalFlowPatch(status=status, current_level=new_level, flow=new_flow)
    
    @staticmethod
    def ensure_actionable(payroll: PayrollView, level: ApprovalLevel) -> None:
        """Terminal payrolls reject every decision; otherwise the level must match."""
        if payroll.is_terminal:
            raise InvalidTransitionException(payroll.id, payroll.status.value)
        if payroll.current_level != level:
            raise StaleApprovalLevelException(
                level.value,
                payroll.current_level.value if payroll.current_level else None,
            )
    
    async def advance(
        self,
        payroll_id: uuid.UUID,
        current_level: Union[ApprovalLevel, str],
        actor: UserView,
        decision: Union[Decision, str],
        reason: Optional[str] = None,
    ) -> TransitionResult:
        """
        Apply `decision` at `current_level`.
        
        Raises:
            InvalidApprovalLevelException: unknown level
            MissingReasonException / ReasonTooLongException: bad reason
            PayrollNotFoundException: no such payroll
            InvalidTransitionException: payroll already COMPLETED or REJECTED
            StaleApprovalLevelException: stored level differs or the race was lost
        """
        level = parse_approval_level(current_level)
        decision = parse_decision(decision)
        reason = self.validate_reason(decision, reason)
        
        payroll = await self.repository.find_payroll_by_id(payroll_id)
        if payroll is None:
            raise PayrollNotFoundException(payroll_id)
        self.ensure_actionable(payroll, level)
        
        decided_at = datetime.now(timezone.utc)
        patch = self.compute_transition(payroll.flow, level, actor.id, decision, reason, decided_at)
        
        try:
            updated = await self.repository.conditional_update_approval_flow(payroll_id, level, patch)
            if updated is None:
                await self.db.rollback()
                await self._raise_conflict(payroll_id, level)
            
            self.db.add(AuditLog(
                action=AuditAction.APPROVE if decision == Decision.APPROVE else AuditAction.REJECT,
                entity="PAYROLL",
                entity_id=payroll_id,
                performed_by=actor.id,
                details={
                    "level": level.value,
                    "nextLevel": patch.current_level.value if patch.current_level else None,
                    "status": patch.status.value,
                    "employeeName": updated.employee_name,
                    "employeeId": str(updated.employee_id),
                    "month": updated.month,
                    "year": updated.year,
                    "remarks": reason or f"Approved by {level.display_name}",
                },
            ))
            await self.db.commit()
        except AppException:
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to apply {decision.value} on payroll {payroll_id} at {level.value}", exc_info=True)
            raise WorkflowExecutionException("advance", payroll_id, e) from e
        
        logger.info(
            f"Payroll {payroll_id} {decision.value} at {level.value} by {actor.id}; "
            f"now {patch.status.value} ({patch.current_level.value if patch.current_level else 'no level'})"
        )
        
        return TransitionResult(
            payroll=updated,
            previous_level=level,
            new_level=patch.current_level,
            actor=actor,
            decision=decision,
            reason=reason,
            decided_at=decided_at,
        )
    
    async def submit(
        self,
        payroll_id: uuid.UUID,
        submitter: UserView,
    ) -> SubmissionResult:
        """
        Enter a fresh pending payroll into the chain at DEPARTMENT_HEAD.
        
        Rejected payrolls cannot re-enter here. Submission is not a decision,
        so no history entry is written.
        """
        payroll = await self.repository.find_payroll_by_id(payroll_id)
        if payroll is None:
            raise PayrollNotFoundException(payroll_id)
        if payroll.status != PayrollStatus.PENDING or payroll.current_level is not None or payroll.flow.history:
            raise InvalidTransitionException(payroll.id, payroll.status.value)
        
        submitted_at = datetime.now(timezone.utc)
        flow = payroll.flow.model_copy(update={
            "current_level": INITIAL_APPROVAL_LEVEL,
            "next_approval_level": INITIAL_APPROVAL_LEVEL,
            "status_message": f"Pending {INITIAL_APPROVAL_LEVEL.value} Approval",
            "submitted_by": submitter.id,
            "submitted_at": submitted_at,
        })
        patch = ApprovalFlowPatch(
            status=PayrollStatus.PENDING,
            current_level=INITIAL_APPROVAL_LEVEL,
            flow=flow,
        )
        
        try:
            updated = await self.repository.conditional_update_approval_flow(payroll_id, None, patch)
            if updated is None:
                await self.db.rollback()
                latest = await self.repository.find_payroll_by_id(payroll_id)
                raise InvalidTransitionException(
                    payroll_id, latest.status.value if latest else PayrollStatus.PENDING.value
                )
            
            self.db.add(AuditLog(
                action=AuditAction.SUBMIT,
                entity="PAYROLL",
                entity_id=payroll_id,
                performed_by=submitter.id,
                details={
                    "level": INITIAL_APPROVAL_LEVEL.value,
                    "employeeName": updated.employee_name,
                    "month": updated.month,
                    "year": updated.year,
                },
            ))
            await self.db.commit()
        except AppException:
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to submit payroll {payroll_id}", exc_info=True)
            raise WorkflowExecutionException("submit", payroll_id, e) from e
        
        logger.info(f"Payroll {payroll_id} submitted by {submitter.id}")
        return SubmissionResult(payroll=updated, submitted_by=submitter, submitted_at=submitted_at)
    
    async def _raise_conflict(self, payroll_id: uuid.UUID, level: ApprovalLevel) -> None:
        latest = await self.repository.find_payroll_by_id(payroll_id)
        if latest is None:
            raise PayrollNotFoundException(payroll_id)
        self.ensure_actionable(latest, level)
        # Level matches again (e.g. resubmitted in between); still a lost race
        raise StaleApprovalLevelException(level.value, level.value)
