"""
HRFlow - Approval Schemas

The approval flow document stored on each payroll, and request/response
bodies for the approval endpoints.

Stored layout (camelCase, one decision record per acted-upon level):

    {
      "currentLevel": "HR_MANAGER",
      "statusMessage": "Pending HR_MANAGER Approval",
      "nextApprovalLevel": "HR_MANAGER",
      "submittedBy": "...", "submittedAt": "...",
      "DEPARTMENT_HEAD": {"status": "APPROVED", "approvedBy": "...", "approvedAt": "...", "reason": ""},
      "history": [{"level": "DEPARTMENT_HEAD", "status": "APPROVED", ...}]
    }
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hrflow.models.payroll import ApprovalLevel, DecisionStatus, PayrollStatus


class DecisionRecord(BaseModel):
    """Outcome of the decision taken at one level."""
    model_config = ConfigDict(populate_by_name=True)
    
    status: DecisionStatus
    approved_by: UUID = Field(alias="approvedBy")
    approved_at: datetime = Field(alias="approvedAt")
    reason: str = ""


class HistoryEntry(BaseModel):
    """One entry of the append-only audit trail."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    
    level: ApprovalLevel
    status: DecisionStatus
    approved_by: UUID = Field(alias="approvedBy")
    approved_at: datetime = Field(alias="approvedAt")
    reason: str = ""


class ApprovalFlow(BaseModel):
    """Workflow progress embedded in a payroll."""
    model_config = ConfigDict(populate_by_name=True)
    
    current_level: Optional[ApprovalLevel] = Field(None, alias="currentLevel")
    status_message: Optional[str] = Field(None, alias="statusMessage")
    next_approval_level: Optional[ApprovalLevel] = Field(None, alias="nextApprovalLevel")
    submitted_by: Optional[UUID] = Field(None, alias="submittedBy")
    submitted_at: Optional[datetime] = Field(None, alias="submittedAt")
    
    department_head: Optional[DecisionRecord] = Field(None, alias="DEPARTMENT_HEAD")
    hr_manager: Optional[DecisionRecord] = Field(None, alias="HR_MANAGER")
    finance_director: Optional[DecisionRecord] = Field(None, alias="FINANCE_DIRECTOR")
    super_admin: Optional[DecisionRecord] = Field(None, alias="SUPER_ADMIN")
    
    history: List[HistoryEntry] = Field(default_factory=list)
    
    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]]) -> "ApprovalFlow":
        return cls.model_validate(document or {})
    
    def to_document(self) -> Dict[str, Any]:
        """Serialize to the stored JSON layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
    
    def decision_for(self, level: ApprovalLevel) -> Optional[DecisionRecord]:
        return getattr(self, _DECISION_FIELDS[level])
    
    def with_decision(
        self,
        level: ApprovalLevel,
        record: DecisionRecord,
        **changes: Any,
    ) -> "ApprovalFlow":
        """Return a copy with the decision for `level` recorded and appended to history."""
        entry = HistoryEntry(
            level=level,
            status=record.status,
            approved_by=record.approved_by,
            approved_at=record.approved_at,
            reason=record.reason,
        )
        update = {
            _DECISION_FIELDS[level]: record,
            "history": [*self.history, entry],
            **changes,
        }
        return self.model_copy(update=update)


_DECISION_FIELDS: Dict[ApprovalLevel, str] = {
    ApprovalLevel.DEPARTMENT_HEAD: "department_head",
    ApprovalLevel.HR_MANAGER: "hr_manager",
    ApprovalLevel.FINANCE_DIRECTOR: "finance_director",
    ApprovalLevel.SUPER_ADMIN: "super_admin",
}


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class ApproveRequest(BaseModel):
    """Body for approve endpoints."""
    remarks: Optional[str] = Field(None, description="Optional approval remarks")


class RejectRequest(BaseModel):
    """Body for reject endpoints. `remarks` is accepted as an alias of `reason`."""
    reason: Optional[str] = None
    remarks: Optional[str] = None
    
    @property
    def effective_reason(self) -> Optional[str]:
        return self.reason if self.reason is not None else self.remarks


class SubmitRequest(BaseModel):
    remarks: Optional[str] = None


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class UserSummary(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    position: Optional[str] = None


class PayrollResponse(BaseModel):
    """Payroll with its approval flow, in the stored camelCase layout."""
    model_config = ConfigDict(from_attributes=True)
    
    id: UUID
    employee_id: UUID
    department_id: Optional[UUID] = None
    month: int
    year: int
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    status: PayrollStatus
    approval_flow: Dict[str, Any]
    employee: Optional[UserSummary] = None


class ApprovalResultData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    payroll: PayrollResponse
    next_approver: Optional[UserSummary] = Field(None, alias="nextApprover")


class ApiResponse(BaseModel):
    """Standard envelope: {success, data?, message}."""
    success: bool = True
    message: str
    data: Optional[Any] = None