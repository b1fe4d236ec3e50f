"""
HRFlow - Payroll Approval Workflow Service

Entry point used by the API for payroll approvals:

    validate -> load -> authorize -> advance (commit) -> resolve next approver -> notify

Once `advance` has committed, the decision is final. Approver lookup and
notifications after that point are best effort; their failures are logged
and never surface to the caller.
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Union
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrflow.models.payroll import ApprovalLevel, Decision
from hrflow.services.actor_directory import ActorDirectory
from hrflow.services.approval_state_machine import (
    ApprovalStateMachine,
    SubmissionResult,
    TransitionResult,
    parse_approval_level,
    parse_decision,
)
from hrflow.services.notification_dispatcher import DispatchReport, NotificationDispatcher
from hrflow.services.payroll_repository import PayrollRepository
from hrflow.services.views import PayrollView, UserView
from hrflow.utils.error_handling import ApproverNotAuthorizedException, PayrollNotFoundException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalOutcome:
    transition: TransitionResult
    next_approver: Optional[UserView]
    notifications: DispatchReport

    @property
    def payroll(self) -> PayrollView:
        return self.transition.payroll

    @property
    def message(self) -> str:
        transition = self.transition
        level_name = transition.previous_level.display_name
        if not transition.is_approval:
            return f"Payroll rejected at {level_name} level"
        if transition.is_completed:
            return "Payroll fully approved and ready for processing"
        return f"Payroll approved at {level_name} level and forwarded to {transition.new_level.display_name}"


@dataclass(frozen=True)
class SubmissionOutcome:
    submission: SubmissionResult
    approver: Optional[UserView]
    notifications: DispatchReport

    @property
    def payroll(self) -> PayrollView:
        return self.submission.payroll


class PayrollApprovalService:
    """Coordinates the state machine, actor directory and dispatcher."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = PayrollRepository(db)
        self.state_machine = ApprovalStateMachine(db, self.repository)
        self.directory = ActorDirectory(db)
        self.dispatcher = NotificationDispatcher(db)

    async def get_payroll(self, payroll_id: uuid.UUID) -> PayrollView:
        payroll = await self.repository.find_payroll_by_id(payroll_id)
        if payroll is None:
            raise PayrollNotFoundException(payroll_id)
        return payroll

    async def process_decision(
        self,
        payroll_id: uuid.UUID,
        level: Union[ApprovalLevel, str],
        actor: UserView,
        decision: Union[Decision, str],
        reason: Optional[str] = None,
    ) -> ApprovalOutcome:
        """Approve or reject a payroll at `level` on behalf of `actor`."""
        level = parse_approval_level(level)
        decision = parse_decision(decision)
        self.state_machine.validate_reason(decision, reason)

        payroll = await self.get_payroll(payroll_id)
        if not await self.directory.can_act_at_level(actor, level, payroll):
            logger.warning(
                f"User {actor.id} ({actor.position or 'no position'}) denied "
                f"{decision.value} at {level.value} on payroll {payroll_id}"
            )
            raise ApproverNotAuthorizedException(level.display_name)

        transition = await self.state_machine.advance(payroll_id, level, actor, decision, reason)

        next_approver = None
        if transition.awaits_next_approver:
            next_approver = await self._resolve_approver(transition.new_level, transition.payroll)

        report = await self.dispatcher.notify_transition(transition, next_approver)
        return ApprovalOutcome(transition=transition, next_approver=next_approver, notifications=report)

    async def submit(self, payroll_id: uuid.UUID, submitter: UserView) -> SubmissionOutcome:
        """Enter a payroll into the chain and notify its department head."""
        submission = await self.state_machine.submit(payroll_id, submitter)
        approver = await self._resolve_approver(ApprovalLevel.DEPARTMENT_HEAD, submission.payroll)
        report = await self.dispatcher.notify_submission(submission, approver)
        return SubmissionOutcome(submission=submission, approver=approver, notifications=report)

    async def _resolve_approver(self, level: ApprovalLevel, payroll: PayrollView) -> Optional[UserView]:
        """Look up who acts next; a miss is reported, not raised."""
        try:
            approver = await self.directory.find_next_approver(level, payroll)
        except SQLAlchemyError as e:
            logger.warning(
                f"Approver lookup for {level.value} failed on payroll {payroll.id}: {e}",
                exc_info=True,
            )
            await self.db.rollback()
            return None

        if approver is None:
            logger.warning(
                f"No {level.display_name} found for payroll {payroll.id}; "
                f"payroll is at {level.value} with nobody to notify"
            )
        return approver
