"""
HRFlow - Notification Dispatcher

Turns a committed workflow transition into in-app notifications.

Recipients for one transition, in order:
1. the employee (approval, rejection or completion outcome)
2. the actor (confirmation for the level they acted at)
3. the next approver, for non-terminal approvals ("requires your approval")

Each recipient is notified at most once per transition. Every send is
independent: a failure is logged and rolled back, and the remaining
recipients are still notified. Nothing here can undo the transition.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set, Tuple
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from hrflow.models.notification import NotificationType
from hrflow.models.payroll import ApprovalLevel
from hrflow.services.approval_state_machine import SubmissionResult, TransitionResult
from hrflow.services.notification_service import NotificationService
from hrflow.services.views import PayrollView, UserView

logger = logging.getLogger(__name__)


# ===========================================
# MESSAGE TEMPLATES
# ===========================================

@dataclass(frozen=True)
class MessageTemplate:
    title: str
    body: str

    def render(self, context: Dict[str, Any]) -> Tuple[str, str]:
        return self.title.format(**context), self.body.format(**context)


# Keyed by (type, level); (type, None) is the fallback for any level.
# Placeholders: employee_name, department_name, period, amount, reason,
# reason_suffix, level_name, next_level_name, actor_name
MESSAGE_TEMPLATES: Dict[Tuple[NotificationType, Optional[ApprovalLevel]], MessageTemplate] = {
    (NotificationType.PAYROLL_SUBMITTED, None): MessageTemplate(
        title="Payroll submitted for approval",
        body=(
            "New payroll submission for {employee_name} ({department_name}) "
            "for {period} requires your approval. Net pay: {amount}"
        ),
    ),
    (NotificationType.PAYROLL_APPROVED, None): MessageTemplate(
        title="Payroll approved",
        body=(
            "Your payroll for {period} has been approved by the {level_name}"
            "{reason_suffix}. It now awaits {next_level_name} approval."
        ),
    ),
    (NotificationType.PAYROLL_REJECTED, None): MessageTemplate(
        title="Payroll rejected",
        body="Your payroll for {period} has been rejected by the {level_name}. Reason: {reason}",
    ),
    (NotificationType.PAYROLL_COMPLETED, None): MessageTemplate(
        title="Payroll fully approved",
        body=(
            "Your payroll for {period} has been fully approved and is ready "
            "for processing. Net pay: {amount}"
        ),
    ),
    (NotificationType.APPROVAL_REQUIRED, None): MessageTemplate(
        title="Payroll requires {level_name} approval",
        body=(
            "Payroll for {employee_name} ({department_name}) for {period} "
            "requires your approval. Net pay: {amount}"
        ),
    ),
    (NotificationType.APPROVAL_REQUIRED, ApprovalLevel.HR_MANAGER): MessageTemplate(
        title="Payroll requires HR Manager approval",
        body=(
            "Payroll for {employee_name} ({department_name}) for {period} was "
            "approved by the Department Head and requires your review. Net pay: {amount}"
        ),
    ),
    (NotificationType.APPROVAL_REQUIRED, ApprovalLevel.FINANCE_DIRECTOR): MessageTemplate(
        title="Payroll requires Finance Director approval",
        body=(
            "Payroll for {employee_name} ({department_name}) for {period} was "
            "approved by HR and requires your financial review. Net pay: {amount}"
        ),
    ),
    (NotificationType.APPROVAL_REQUIRED, ApprovalLevel.SUPER_ADMIN): MessageTemplate(
        title="Payroll requires final approval",
        body=(
            "Payroll for {employee_name} ({department_name}) for {period} was "
            "approved by the Finance Director and awaits your final approval. "
            "Net pay: {amount}"
        ),
    ),
    (NotificationType.APPROVAL_CONFIRMED, None): MessageTemplate(
        title="Approval recorded",
        body=(
            "You approved the payroll for {employee_name} for {period} as "
            "{level_name}. It has been forwarded for {next_level_name} approval."
        ),
    ),
    (NotificationType.APPROVAL_CONFIRMED, ApprovalLevel.SUPER_ADMIN): MessageTemplate(
        title="Final approval recorded",
        body=(
            "You gave final approval to the payroll for {employee_name} for "
            "{period}. It is ready for processing. Net pay: {amount}"
        ),
    ),
    (NotificationType.REJECTION_CONFIRMED, None): MessageTemplate(
        title="Rejection recorded",
        body=(
            "You rejected the payroll for {employee_name} for {period} as "
            "{level_name}. Reason: {reason}"
        ),
    ),
}


def render_message(
    notification_type: NotificationType,
    level: Optional[ApprovalLevel],
    context: Dict[str, Any],
) -> Tuple[str, str]:
    """Render (title, message) for a type at a level, falling back to the generic template."""
    template = MESSAGE_TEMPLATES.get((notification_type, level)) or MESSAGE_TEMPLATES.get(
        (notification_type, None)
    )
    if template is None:
        return (
            f"Payroll {notification_type.value.replace('_', ' ').lower()}",
            f"Payroll update for {context['employee_name']} for {context['period']}",
        )
    return template.render(context)


def format_amount(value: Optional[Decimal]) -> str:
    return f"{Decimal(value or 0):,.2f}"


# ===========================================
# DISPATCHER
# ===========================================

@dataclass
class DispatchReport:
    """Per-recipient outcome of one dispatch."""
    sent: List[uuid.UUID] = field(default_factory=list)
    failed: List[uuid.UUID] = field(default_factory=list)
    skipped: List[uuid.UUID] = field(default_factory=list)


class NotificationDispatcher:
    """Best-effort fan-out of workflow notifications."""

    def __init__(self, db: AsyncSession, notification_service: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notification_service or NotificationService(db)

    async def notify_transition(
        self,
        result: TransitionResult,
        next_approver: Optional[UserView] = None,
    ) -> DispatchReport:
        payroll = result.payroll
        level = result.previous_level
        context = self._build_context(payroll, level, result.new_level, result.actor, result.reason)

        targets: List[Tuple[uuid.UUID, NotificationType, Optional[ApprovalLevel]]] = []
        if result.is_approval:
            if result.is_completed:
                targets.append((payroll.employee_id, NotificationType.PAYROLL_COMPLETED, level))
            else:
                targets.append((payroll.employee_id, NotificationType.PAYROLL_APPROVED, level))
            targets.append((result.actor.id, NotificationType.APPROVAL_CONFIRMED, level))
            if result.awaits_next_approver and next_approver is not None:
                targets.append((next_approver.id, NotificationType.APPROVAL_REQUIRED, result.new_level))
        else:
            targets.append((payroll.employee_id, NotificationType.PAYROLL_REJECTED, level))
            targets.append((result.actor.id, NotificationType.REJECTION_CONFIRMED, level))

        report = await self._dispatch(payroll, targets, context)
        logger.info(
            f"Dispatched {len(report.sent)} notification(s) for payroll {payroll.id} "
            f"({result.decision.value} at {level.value}); "
            f"{len(report.failed)} failed, {len(report.skipped)} duplicate(s) skipped"
        )
        return report

    async def notify_submission(
        self,
        result: SubmissionResult,
        approver: Optional[UserView],
    ) -> DispatchReport:
        """Tell the department head a payroll awaits their approval."""
        if approver is None:
            return DispatchReport()

        context = self._build_context(
            result.payroll,
            ApprovalLevel.DEPARTMENT_HEAD,
            ApprovalLevel.DEPARTMENT_HEAD,
            result.submitted_by,
            "",
        )
        return await self._dispatch(
            result.payroll,
            [(approver.id, NotificationType.PAYROLL_SUBMITTED, ApprovalLevel.DEPARTMENT_HEAD)],
            context,
        )

    async def _dispatch(
        self,
        payroll: PayrollView,
        targets: List[Tuple[uuid.UUID, NotificationType, Optional[ApprovalLevel]]],
        context: Dict[str, Any],
    ) -> DispatchReport:
        report = DispatchReport()
        notified: Set[uuid.UUID] = set()

        for recipient_id, notification_type, level in targets:
            if recipient_id in notified:
                report.skipped.append(recipient_id)
                continue
            notified.add(recipient_id)

            title, message = render_message(notification_type, level, context)
            try:
                await self.notifications.create_notification(
                    recipient_id=recipient_id,
                    notification_type=notification_type,
                    title=title,
                    message=message,
                    payroll_id=payroll.id,
                    data=self._snapshot(payroll, context),
                )
                report.sent.append(recipient_id)
            except Exception as e:
                logger.error(
                    f"Failed to send {notification_type.value} for payroll {payroll.id} "
                    f"to {recipient_id}: {e}",
                    exc_info=True,
                )
                await self.db.rollback()
                report.failed.append(recipient_id)

        return report

    @staticmethod
    def _build_context(
        payroll: PayrollView,
        level: ApprovalLevel,
        new_level: Optional[ApprovalLevel],
        actor: UserView,
        reason: str,
    ) -> Dict[str, Any]:
        return {
            "employee_name": payroll.employee_name,
            "department_name": payroll.department_name,
            "period": payroll.period,
            "amount": format_amount(payroll.net_pay),
            "reason": reason,
            "reason_suffix": f": {reason}" if reason else "",
            "level_name": level.display_name,
            "next_level_name": new_level.display_name if new_level else "no further",
            "actor_name": actor.full_name,
        }

    @staticmethod
    def _snapshot(payroll: PayrollView, context: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "payrollId": str(payroll.id),
            "month": payroll.month,
            "year": payroll.year,
            "status": payroll.status.value,
            "currentLevel": payroll.current_level.value if payroll.current_level else None,
            "employeeName": context["employee_name"],
            "departmentName": context["department_name"],
            "netPay": context["amount"],
            "remarks": context["reason"],
            "actorName": context["actor_name"],
        }
