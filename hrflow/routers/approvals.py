"""
HRFlow - Payroll Approvals Router

Approve or reject a payroll at one level of the chain:

    PATCH /approvals/{level}/{payroll_id}/approve   body: {"remarks": "..."}
    PATCH /approvals/{level}/{payroll_id}/reject    body: {"reason": "..."}

`level` is one of department-head, hr-manager, finance-director, super-admin.
Role permissions are checked here; level authority (department, position)
is checked by the workflow service.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrflow.database import get_async_session
from hrflow.dependencies import require_permission
from hrflow.models.payroll import Decision
from hrflow.schemas.approval import (
    ApiResponse,
    ApprovalResultData,
    ApproveRequest,
    PayrollResponse,
    RejectRequest,
    UserSummary,
)
from hrflow.services.approval_workflow import ApprovalOutcome, PayrollApprovalService
from hrflow.services.views import PayrollView, UserView
from hrflow.utils.permissions import Permission


router = APIRouter(prefix="/approvals", tags=["Approvals"])


# ===========================================
# HELPER FUNCTIONS
# ===========================================

def payroll_to_response(payroll: PayrollView) -> PayrollResponse:
    return PayrollResponse.model_validate(payroll.to_response())


def outcome_to_response(outcome: ApprovalOutcome) -> ApiResponse:
    next_approver = outcome.next_approver
    data = ApprovalResultData(
        payroll=payroll_to_response(outcome.payroll),
        next_approver=UserSummary(**next_approver.summary()) if next_approver else None,
    )
    return ApiResponse(
        message=outcome.message,
        data=data.model_dump(mode="json", by_alias=True),
    )


# ===========================================
# ENDPOINTS
# ===========================================

@router.get(
    "/payrolls/{payroll_id}",
    response_model=ApiResponse,
    summary="Get payroll approval state",
)
async def get_payroll(
    payroll_id: uuid.UUID,
    current_user: UserView = Depends(require_permission(Permission.VIEW_PAYROLL)),
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollApprovalService(db)
    payroll = await service.get_payroll(payroll_id)
    return ApiResponse(
        message="Payroll retrieved successfully",
        data=payroll_to_response(payroll).model_dump(mode="json"),
    )


@router.post(
    "/payrolls/{payroll_id}/submit",
    response_model=ApiResponse,
    summary="Submit payroll for approval",
    description="Enter a pending payroll into the chain at the Department Head level.",
)
async def submit_payroll(
    payroll_id: uuid.UUID,
    current_user: UserView = Depends(require_permission(Permission.SUBMIT_PAYROLL)),
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollApprovalService(db)
    outcome = await service.submit(payroll_id, current_user)
    approver = outcome.approver
    data = ApprovalResultData(
        payroll=payroll_to_response(outcome.payroll),
        next_approver=UserSummary(**approver.summary()) if approver else None,
    )
    return ApiResponse(
        message="Payroll submitted for Department Head approval",
        data=data.model_dump(mode="json", by_alias=True),
    )


@router.patch(
    "/{level}/{payroll_id}/approve",
    response_model=ApiResponse,
    summary="Approve payroll at a level",
)
async def approve_payroll(
    level: str,
    payroll_id: uuid.UUID,
    body: Optional[ApproveRequest] = None,
    current_user: UserView = Depends(require_permission(Permission.APPROVE_PAYROLL)),
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollApprovalService(db)
    outcome = await service.process_decision(
        payroll_id=payroll_id,
        level=level,
        actor=current_user,
        decision=Decision.APPROVE,
        reason=body.remarks if body else None,
    )
    return outcome_to_response(outcome)


@router.patch(
    "/{level}/{payroll_id}/reject",
    response_model=ApiResponse,
    summary="Reject payroll at a level",
    description="A non-empty reason (max 500 characters) is required.",
)
async def reject_payroll(
    level: str,
    payroll_id: uuid.UUID,
    body: RejectRequest,
    current_user: UserView = Depends(require_permission(Permission.APPROVE_PAYROLL)),
    db: AsyncSession = Depends(get_async_session),
):
    service = PayrollApprovalService(db)
    outcome = await service.process_decision(
        payroll_id=payroll_id,
        level=level,
        actor=current_user,
        decision=Decision.REJECT,
        reason=body.effective_reason,
    )
    return outcome_to_response(outcome)
