"""
HRFlow - Test Configuration

Pytest fixtures and configuration.

Every test gets its own SQLite database file, seeded with an organisation:
Engineering (employee + department head), Human Resources (HR manager),
Finance (finance director) and a super admin.
"""

import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker

from hrflow.database import Base, get_async_session
from hrflow.models.department import Department
from hrflow.models.payroll import (
    ApprovalLevel,
    Decision,
    INITIAL_APPROVAL_LEVEL,
    Payroll,
    PayrollStatus,
)
from hrflow.models.user import User, UserRole
from hrflow.schemas.approval import ApprovalFlow
from hrflow.services.approval_state_machine import ApprovalStateMachine
from hrflow.services.views import UserView
from hrflow.utils.security import create_access_token
from main import app


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh database file for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hrflow_test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Test client; each request gets its own session, as in production."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

@dataclass(frozen=True)
class Organisation:
    employee: UserView
    department_head: UserView
    hr_manager: UserView
    finance_director: UserView
    super_admin: UserView
    engineering_id: UUID
    hr_department_id: UUID
    finance_department_id: Optional[UUID]

    def approver_for(self, level: ApprovalLevel) -> UserView:
        return {
            ApprovalLevel.DEPARTMENT_HEAD: self.department_head,
            ApprovalLevel.HR_MANAGER: self.hr_manager,
            ApprovalLevel.FINANCE_DIRECTOR: self.finance_director,
            ApprovalLevel.SUPER_ADMIN: self.super_admin,
        }[level]


async def seed_organisation(session: AsyncSession, with_finance: bool = True) -> Organisation:
    engineering = Department(name="Engineering", code="ENG")
    hr = Department(name="Human Resources", code="HR")
    session.add_all([engineering, hr])
    finance = None
    if with_finance:
        finance = Department(name="Finance", code="FIN")
        session.add(finance)
    await session.flush()

    employee = User(
        email="ada.obi@example.com",
        first_name="Ada",
        last_name="Obi",
        role=UserRole.USER,
        position="Software Engineer",
        department_id=engineering.id,
    )
    department_head = User(
        email="chinedu.eze@example.com",
        first_name="Chinedu",
        last_name="Eze",
        role=UserRole.ADMIN,
        position="Head of Engineering",
        department_id=engineering.id,
    )
    hr_manager = User(
        email="grace.bello@example.com",
        first_name="Grace",
        last_name="Bello",
        role=UserRole.ADMIN,
        position="HR Manager",
        department_id=hr.id,
    )
    finance_director = User(
        email="musa.danjuma@example.com",
        first_name="Musa",
        last_name="Danjuma",
        role=UserRole.ADMIN,
        position="Finance Director",
        department_id=finance.id if finance else None,
    )
    super_admin = User(
        email="tolu.ade@example.com",
        first_name="Tolu",
        last_name="Ade",
        role=UserRole.SUPER_ADMIN,
        position="System Administrator",
    )
    users = [employee, department_head, hr_manager, finance_director, super_admin]
    session.add_all(users)
    await session.flush()

    engineering.head_of_department_id = department_head.id
    await session.commit()

    return Organisation(
        employee=UserView.from_model(employee),
        department_head=UserView.from_model(department_head),
        hr_manager=UserView.from_model(hr_manager),
        finance_director=UserView.from_model(finance_director),
        super_admin=UserView.from_model(super_admin),
        engineering_id=engineering.id,
        hr_department_id=hr.id,
        finance_department_id=finance.id if finance else None,
    )


@pytest_asyncio.fixture
async def org(db_session: AsyncSession) -> Organisation:
    """Full organisation with all four approvers."""
    return await seed_organisation(db_session)


@pytest_asyncio.fixture
async def org_without_finance(db_session: AsyncSession) -> Organisation:
    """Organisation with no Finance department."""
    return await seed_organisation(db_session, with_finance=False)


def build_flow_at(level: Optional[ApprovalLevel], org: Organisation) -> ApprovalFlow:
    """Approval flow that was submitted and approved up to `level`."""
    if level is None:
        return ApprovalFlow()

    submitted_at = datetime(2026, 1, 31, 9, 0, tzinfo=timezone.utc)
    flow = ApprovalFlow(
        current_level=INITIAL_APPROVAL_LEVEL,
        next_approval_level=INITIAL_APPROVAL_LEVEL,
        status_message=f"Pending {INITIAL_APPROVAL_LEVEL.value} Approval",
        submitted_by=org.super_admin.id,
        submitted_at=submitted_at,
    )
    for step in ApprovalLevel.actionable():
        if step == level:
            break
        flow = ApprovalStateMachine.compute_transition(
            flow, step, org.approver_for(step).id, Decision.APPROVE, "", submitted_at
        ).flow
    return flow


PayrollFactory = Callable[..., Awaitable[UUID]]


@pytest_asyncio.fixture
async def make_payroll(db_session: AsyncSession) -> PayrollFactory:
    """Create a payroll for the employee, waiting at `level`."""
    months = itertools.count(1)

    async def factory(
        org: Organisation,
        level: Optional[ApprovalLevel] = ApprovalLevel.DEPARTMENT_HEAD,
        status: PayrollStatus = PayrollStatus.PENDING,
        net_pay: Decimal = Decimal("450000.00"),
    ) -> UUID:
        flow = build_flow_at(level, org)
        payroll = Payroll(
            employee_id=org.employee.id,
            department_id=org.engineering_id,
            month=next(months),
            year=2026,
            gross_pay=net_pay + Decimal("50000.00"),
            total_deductions=Decimal("50000.00"),
            net_pay=net_pay,
            status=status,
            current_level=level,
            approval_flow=flow.to_document(),
        )
        db_session.add(payroll)
        await db_session.commit()
        return payroll.id

    return factory


@pytest.fixture
def auth_headers() -> Callable[[UserView], Dict[str, str]]:
    """Bearer headers for a seeded user."""

    def headers_for(user: UserView) -> Dict[str, str]:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return headers_for
