"""
API tests for payroll approval endpoints.
"""

import pytest
from sqlalchemy import select

from hrflow.models.notification import Notification, NotificationType
from hrflow.models.payroll import ApprovalLevel


LEVEL_PATHS = {
    ApprovalLevel.DEPARTMENT_HEAD: "department-head",
    ApprovalLevel.HR_MANAGER: "hr-manager",
    ApprovalLevel.FINANCE_DIRECTOR: "finance-director",
    ApprovalLevel.SUPER_ADMIN: "super-admin",
}


def approve_url(level, payroll_id):
    return f"/api/v1/approvals/{LEVEL_PATHS[level]}/{payroll_id}/approve"


def reject_url(level, payroll_id):
    return f"/api/v1/approvals/{LEVEL_PATHS[level]}/{payroll_id}/reject"


class TestApproveEndpoint:

    @pytest.mark.asyncio
    async def test_department_head_approves(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.patch(
            approve_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id),
            json={"remarks": "Hours verified"},
            headers=auth_headers(org.department_head),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "forwarded to HR Manager" in body["message"]
        flow = body["data"]["payroll"]["approval_flow"]
        assert flow["currentLevel"] == "HR_MANAGER"
        assert flow["statusMessage"] == "Pending HR_MANAGER Approval"
        assert flow["DEPARTMENT_HEAD"]["reason"] == "Hours verified"
        assert body["data"]["payroll"]["status"] == "PENDING"
        assert body["data"]["nextApprover"]["id"] == str(org.hr_manager.id)

    @pytest.mark.asyncio
    async def test_approve_without_body(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.patch(
            approve_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id),
            headers=auth_headers(org.department_head),
        )

        assert response.status_code == 200
        assert response.json()["data"]["payroll"]["approval_flow"]["DEPARTMENT_HEAD"]["reason"] == ""

    @pytest.mark.asyncio
    async def test_full_chain_to_completion(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        for level in ApprovalLevel.actionable():
            response = await client.patch(
                approve_url(level, payroll_id),
                json={},
                headers=auth_headers(org.approver_for(level)),
            )
            assert response.status_code == 200, response.text

        body = response.json()
        assert body["data"]["payroll"]["status"] == "COMPLETED"
        assert body["data"]["payroll"]["approval_flow"]["currentLevel"] == "COMPLETED"
        assert len(body["data"]["payroll"]["approval_flow"]["history"]) == 4
        assert body["data"]["nextApprover"] is None

        again = await client.patch(
            approve_url(ApprovalLevel.SUPER_ADMIN, payroll_id),
            json={},
            headers=auth_headers(org.super_admin),
        )
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "INVALID_TRANSITION"

    @pytest.mark.asyncio
    async def test_stale_level_returns_conflict(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org, level=ApprovalLevel.HR_MANAGER)

        response = await client.patch(
            approve_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id),
            json={},
            headers=auth_headers(org.department_head),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "STALE_LEVEL"

    @pytest.mark.asyncio
    async def test_wrong_approver_is_forbidden(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.patch(
            approve_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id),
            json={},
            headers=auth_headers(org.hr_manager),
        )

        assert response.status_code == 403
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "NOT_AUTHORIZED_FOR_LEVEL"

    @pytest.mark.asyncio
    async def test_employee_lacks_permission(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.patch(
            approve_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id),
            json={},
            headers=auth_headers(org.employee),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_level(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.patch(
            f"/api/v1/approvals/ceo/{payroll_id}/approve",
            json={},
            headers=auth_headers(org.super_admin),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_LEVEL"

    @pytest.mark.asyncio
    async def test_unknown_payroll(self, client, org, auth_headers):
        response = await client.patch(
            approve_url(ApprovalLevel.SUPER_ADMIN, "00000000-0000-4000-8000-000000000000"),
            json={},
            headers=auth_headers(org.super_admin),
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PAYROLL_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_malformed_payroll_id(self, client, org, auth_headers):
        response = await client.patch(
            approve_url(ApprovalLevel.SUPER_ADMIN, "not-a-uuid"),
            json={},
            headers=auth_headers(org.super_admin),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client, org, make_payroll):
        payroll_id = await make_payroll(org)

        response = await client.patch(approve_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id), json={})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_finance_department_does_not_block_approval(
        self, client, db_session, org_without_finance, make_payroll, auth_headers
    ):
        org = org_without_finance
        payroll_id = await make_payroll(org, level=ApprovalLevel.HR_MANAGER)

        response = await client.patch(
            approve_url(ApprovalLevel.HR_MANAGER, payroll_id),
            json={},
            headers=auth_headers(org.hr_manager),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["payroll"]["approval_flow"]["currentLevel"] == "FINANCE_DIRECTOR"
        assert body["data"]["nextApprover"] is None

        result = await db_session.execute(select(Notification).where(Notification.payroll_id == payroll_id))
        notifications = result.scalars().all()
        assert {n.recipient_id for n in notifications} == {org.employee.id, org.hr_manager.id}
        assert all(n.notification_type != NotificationType.APPROVAL_REQUIRED for n in notifications)


class TestRejectEndpoint:

    @pytest.mark.asyncio
    async def test_hr_manager_rejects(self, client, db_session, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org, level=ApprovalLevel.HR_MANAGER)

        response = await client.patch(
            reject_url(ApprovalLevel.HR_MANAGER, payroll_id),
            json={"reason": "Incorrect overtime hours"},
            headers=auth_headers(org.hr_manager),
        )

        assert response.status_code == 200
        payroll = response.json()["data"]["payroll"]
        assert payroll["status"] == "REJECTED"
        assert "currentLevel" not in payroll["approval_flow"]
        assert payroll["approval_flow"]["HR_MANAGER"]["reason"] == "Incorrect overtime hours"

        result = await db_session.execute(
            select(Notification).where(
                Notification.payroll_id == payroll_id,
                Notification.recipient_id == org.employee.id,
            )
        )
        employee_notification = result.scalar_one()
        assert employee_notification.notification_type == NotificationType.PAYROLL_REJECTED
        assert "Incorrect overtime hours" in employee_notification.message

    @pytest.mark.asyncio
    async def test_remarks_accepted_as_reason(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.patch(
            reject_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id),
            json={"remarks": "Duplicate payroll"},
            headers=auth_headers(org.department_head),
        )

        assert response.status_code == 200
        assert response.json()["data"]["payroll"]["approval_flow"]["DEPARTMENT_HEAD"]["reason"] == "Duplicate payroll"

    @pytest.mark.asyncio
    async def test_reject_without_reason(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.patch(
            reject_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id),
            json={"reason": ""},
            headers=auth_headers(org.department_head),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_REASON"

        current = await client.get(
            f"/api/v1/approvals/payrolls/{payroll_id}",
            headers=auth_headers(org.department_head),
        )
        assert current.json()["data"]["status"] == "PENDING"
        assert current.json()["data"]["approval_flow"]["history"] == []

    @pytest.mark.asyncio
    async def test_reason_too_long(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.patch(
            reject_url(ApprovalLevel.DEPARTMENT_HEAD, payroll_id),
            json={"reason": "x" * 501},
            headers=auth_headers(org.department_head),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "REASON_TOO_LONG"


class TestSubmitAndRead:

    @pytest.mark.asyncio
    async def test_submit_notifies_department_head(self, client, db_session, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org, level=None)

        response = await client.post(
            f"/api/v1/approvals/payrolls/{payroll_id}/submit",
            headers=auth_headers(org.super_admin),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["payroll"]["approval_flow"]["currentLevel"] == "DEPARTMENT_HEAD"
        assert body["data"]["payroll"]["approval_flow"]["submittedBy"] == str(org.super_admin.id)
        assert body["data"]["nextApprover"]["id"] == str(org.department_head.id)

        result = await db_session.execute(select(Notification).where(Notification.payroll_id == payroll_id))
        notification = result.scalar_one()
        assert notification.recipient_id == org.department_head.id
        assert notification.notification_type == NotificationType.PAYROLL_SUBMITTED

    @pytest.mark.asyncio
    async def test_submit_twice_conflicts(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org)

        response = await client.post(
            f"/api/v1/approvals/payrolls/{payroll_id}/submit",
            headers=auth_headers(org.super_admin),
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_get_payroll(self, client, org, make_payroll, auth_headers):
        payroll_id = await make_payroll(org, level=ApprovalLevel.FINANCE_DIRECTOR)

        response = await client.get(
            f"/api/v1/approvals/payrolls/{payroll_id}",
            headers=auth_headers(org.finance_director),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == str(payroll_id)
        assert data["employee"]["name"] == "Ada Obi"
        assert [entry["level"] for entry in data["approval_flow"]["history"]] == [
            "DEPARTMENT_HEAD",
            "HR_MANAGER",
        ]


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
