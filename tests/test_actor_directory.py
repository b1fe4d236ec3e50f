"""
Tests for approver resolution and level authority.
"""

from dataclasses import replace

import pytest
from sqlalchemy import update

from hrflow.models.department import Department, DepartmentStatus
from hrflow.models.payroll import ApprovalLevel
from hrflow.models.user import User, UserRole, UserStatus
from hrflow.services.actor_directory import ActorDirectory
from hrflow.services.payroll_repository import PayrollRepository
from hrflow.services.views import UserView


async def add_user(db_session, department_id, position, email, role=UserRole.ADMIN) -> UserView:
    user = User(
        email=email,
        first_name="Extra",
        last_name=position.split()[0],
        role=role,
        position=position,
        department_id=department_id,
    )
    db_session.add(user)
    await db_session.commit()
    return UserView.from_model(user)


async def set_user_status(db_session, user_id, status):
    await db_session.execute(update(User).where(User.id == user_id).values(status=status))
    await db_session.commit()


class TestFindNextApprover:

    @pytest.mark.asyncio
    async def test_resolves_each_level(self, db_session, org, make_payroll):
        payroll = await PayrollRepository(db_session).find_payroll_by_id(await make_payroll(org))
        directory = ActorDirectory(db_session)

        assert (await directory.find_next_approver(ApprovalLevel.DEPARTMENT_HEAD, payroll)).id == org.department_head.id
        assert (await directory.find_next_approver(ApprovalLevel.HR_MANAGER)).id == org.hr_manager.id
        assert (await directory.find_next_approver(ApprovalLevel.FINANCE_DIRECTOR)).id == org.finance_director.id
        assert (await directory.find_next_approver(ApprovalLevel.SUPER_ADMIN)).id == org.super_admin.id

    @pytest.mark.asyncio
    async def test_completed_has_no_approver(self, db_session, org):
        assert await ActorDirectory(db_session).find_next_approver(ApprovalLevel.COMPLETED) is None

    @pytest.mark.asyncio
    async def test_missing_finance_department_is_not_found(self, db_session, org_without_finance):
        directory = ActorDirectory(db_session)

        assert await directory.find_next_approver(ApprovalLevel.FINANCE_DIRECTOR) is None

    @pytest.mark.asyncio
    async def test_inactive_department_is_ignored(self, db_session, org):
        await db_session.execute(
            update(Department)
            .where(Department.id == org.hr_department_id)
            .values(status=DepartmentStatus.INACTIVE)
        )
        await db_session.commit()

        assert await ActorDirectory(db_session).find_next_approver(ApprovalLevel.HR_MANAGER) is None

    @pytest.mark.asyncio
    async def test_department_name_variant(self, db_session, org):
        await db_session.execute(
            update(Department).where(Department.id == org.hr_department_id).values(name="HR")
        )
        await db_session.commit()

        approver = await ActorDirectory(db_session).find_next_approver(ApprovalLevel.HR_MANAGER)
        assert approver.id == org.hr_manager.id

    @pytest.mark.asyncio
    async def test_title_match_is_case_insensitive_substring(self, db_session, org):
        await set_user_status(db_session, org.hr_manager.id, UserStatus.INACTIVE)
        await add_user(db_session, org.hr_department_id, "Recruitment Officer", "recruiter@example.com")
        deputy = await add_user(db_session, org.hr_department_id, "Deputy HEAD OF HR", "deputy@example.com")

        approver = await ActorDirectory(db_session).find_next_approver(ApprovalLevel.HR_MANAGER)

        assert approver.id == deputy.id

    @pytest.mark.asyncio
    async def test_inactive_holders_are_not_resolved(self, db_session, org):
        await set_user_status(db_session, org.super_admin.id, UserStatus.SUSPENDED)
        await set_user_status(db_session, org.finance_director.id, UserStatus.INACTIVE)
        directory = ActorDirectory(db_session)

        assert await directory.find_next_approver(ApprovalLevel.SUPER_ADMIN) is None
        assert await directory.find_next_approver(ApprovalLevel.FINANCE_DIRECTOR) is None

    @pytest.mark.asyncio
    async def test_department_without_head(self, db_session, org, make_payroll):
        await db_session.execute(
            update(Department).where(Department.id == org.engineering_id).values(head_of_department_id=None)
        )
        await db_session.commit()
        payroll = await PayrollRepository(db_session).find_payroll_by_id(await make_payroll(org))

        directory = ActorDirectory(db_session)
        assert await directory.find_next_approver(ApprovalLevel.DEPARTMENT_HEAD, payroll) is None
        assert await directory.find_next_approver(ApprovalLevel.DEPARTMENT_HEAD) is None

    @pytest.mark.asyncio
    async def test_several_title_holders_resolve_to_one(self, db_session, org):
        # Uniqueness is not enforced: any qualifying holder may be picked, but
        # repeated lookups agree.
        second = await add_user(db_session, org.hr_department_id, "HR Manager (Payroll)", "hr2@example.com")
        directory = ActorDirectory(db_session)

        first_pick = await directory.find_next_approver(ApprovalLevel.HR_MANAGER)
        second_pick = await directory.find_next_approver(ApprovalLevel.HR_MANAGER)

        assert first_pick.id in {org.hr_manager.id, second.id}
        assert first_pick.id == second_pick.id


class TestCanActAtLevel:

    @pytest.mark.asyncio
    async def test_level_authority(self, db_session, org, make_payroll):
        payroll = await PayrollRepository(db_session).find_payroll_by_id(await make_payroll(org))
        directory = ActorDirectory(db_session)

        assert await directory.can_act_at_level(org.department_head, ApprovalLevel.DEPARTMENT_HEAD, payroll)
        assert await directory.can_act_at_level(org.hr_manager, ApprovalLevel.HR_MANAGER, payroll)
        assert await directory.can_act_at_level(org.finance_director, ApprovalLevel.FINANCE_DIRECTOR, payroll)
        assert await directory.can_act_at_level(org.super_admin, ApprovalLevel.SUPER_ADMIN, payroll)

    @pytest.mark.asyncio
    async def test_wrong_level_is_refused(self, db_session, org, make_payroll):
        payroll = await PayrollRepository(db_session).find_payroll_by_id(await make_payroll(org))
        directory = ActorDirectory(db_session)

        assert not await directory.can_act_at_level(org.hr_manager, ApprovalLevel.DEPARTMENT_HEAD, payroll)
        assert not await directory.can_act_at_level(org.finance_director, ApprovalLevel.HR_MANAGER, payroll)
        assert not await directory.can_act_at_level(org.department_head, ApprovalLevel.SUPER_ADMIN, payroll)
        assert not await directory.can_act_at_level(org.employee, ApprovalLevel.DEPARTMENT_HEAD, payroll)

    @pytest.mark.asyncio
    async def test_manager_title_in_same_department(self, db_session, org, make_payroll):
        payroll = await PayrollRepository(db_session).find_payroll_by_id(await make_payroll(org))
        manager = await add_user(db_session, org.engineering_id, "Engineering Manager", "em@example.com")
        outsider = await add_user(db_session, org.hr_department_id, "Operations Manager", "ops@example.com")
        directory = ActorDirectory(db_session)

        assert await directory.can_act_at_level(manager, ApprovalLevel.DEPARTMENT_HEAD, payroll)
        assert not await directory.can_act_at_level(outsider, ApprovalLevel.DEPARTMENT_HEAD, payroll)

    @pytest.mark.asyncio
    async def test_inactive_actor_is_refused(self, db_session, org, make_payroll):
        payroll = await PayrollRepository(db_session).find_payroll_by_id(await make_payroll(org))
        await set_user_status(db_session, org.hr_manager.id, UserStatus.INACTIVE)
        inactive = replace(org.hr_manager, status=UserStatus.INACTIVE)

        assert not await ActorDirectory(db_session).can_act_at_level(inactive, ApprovalLevel.HR_MANAGER, payroll)
