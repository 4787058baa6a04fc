"""
Pytest configuration and fixtures.
Provides an in-memory SQLite session and in-memory collaborators for the approvals services.
"""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from approvals.db.base import Base
from approvals.db.session import create_tables
from approvals.models.user import User, UserRole
from approvals.services.audit_service import AuditService
from approvals.services.delegation_service import DelegationService
from approvals.services.entitlement_service import EntitlementService
from approvals.services.timesheet_approval_service import TimesheetApprovalService

from fakes import FakeOrgChart, FakeUserDirectory, FixedClock, InMemoryApprovalRepository, InMemoryAuditSink


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TODAY = date(2025, 1, 6)
WEEK_START = date(2025, 1, 5)

MANAGER_ID = 1
EMPLOYEE_ID = 2
DELEGATE_ID = 3
ADMIN_ID = 4
OTHER_MANAGER_ID = 5
LEADER_ID = 6
INACTIVE_ID = 7
SECOND_EMPLOYEE_ID = 8


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 6, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def users():
    directory = FakeUserDirectory()
    directory.add(MANAGER_ID, "Morgan Lee", UserRole.MANAGER)
    directory.add(EMPLOYEE_ID, "Emery Stone", UserRole.EMPLOYEE)
    directory.add(DELEGATE_ID, "Devon Park", UserRole.MANAGER)
    directory.add(ADMIN_ID, "Alex Admin", UserRole.TIMESHEET_ADMIN)
    directory.add(OTHER_MANAGER_ID, "Quinn Reyes", UserRole.MANAGER)
    directory.add(LEADER_ID, "Blair Chen", UserRole.LEADERSHIP)
    directory.add(INACTIVE_ID, "Casey Gone", UserRole.MANAGER, is_active=False)
    directory.add(SECOND_EMPLOYEE_ID, "Riley Fox", UserRole.EMPLOYEE)
    return directory


@pytest.fixture
def org():
    return FakeOrgChart({
        EMPLOYEE_ID: MANAGER_ID,
        SECOND_EMPLOYEE_ID: OTHER_MANAGER_ID,
        MANAGER_ID: LEADER_ID,
        DELEGATE_ID: LEADER_ID,
        OTHER_MANAGER_ID: LEADER_ID,
    })


@pytest.fixture
def repository():
    return InMemoryApprovalRepository()


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def audit(audit_sink):
    return AuditService(audit_sink, audit_sink)


@pytest.fixture
def delegation_service(repository, users, audit, clock):
    return DelegationService(repository, users, audit, clock)


@pytest.fixture
def entitlement_service(users, org, delegation_service, clock):
    return EntitlementService(users, org, delegation_service, clock)


@pytest.fixture
def approval_service(repository, entitlement_service, audit, clock):
    return TimesheetApprovalService(repository, entitlement_service, audit, clock)


@pytest.fixture(scope="function")
async def test_session_maker():
    """
    Create a sessionmaker bound to a fresh in-memory database.
    Uses in-memory SQLite for fast tests.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    await create_tables(test_engine)

    yield async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def test_db_session(test_session_maker):
    """Create a test database session with the standard users committed."""
    async with test_session_maker() as session:
        session.add_all([
            User(id=LEADER_ID, name="Blair Chen", email="blair@example.com", role=UserRole.LEADERSHIP,
                 entra_object_id="oid-leader"),
            User(id=MANAGER_ID, name="Morgan Lee", email="morgan@example.com", role=UserRole.MANAGER,
                 manager_id=LEADER_ID, entra_object_id="oid-manager"),
            User(id=EMPLOYEE_ID, name="Emery Stone", email="emery@example.com", role=UserRole.EMPLOYEE,
                 manager_id=MANAGER_ID, entra_object_id="oid-employee"),
            User(id=DELEGATE_ID, name="Devon Park", email="devon@example.com", role=UserRole.MANAGER,
                 manager_id=LEADER_ID),
            User(id=ADMIN_ID, name="Alex Admin", email="alex@example.com", role=UserRole.TIMESHEET_ADMIN),
            User(id=OTHER_MANAGER_ID, name="Quinn Reyes", email="quinn@example.com", role=UserRole.MANAGER,
                 manager_id=LEADER_ID),
            User(id=INACTIVE_ID, name="Casey Gone", email="casey@example.com", role=UserRole.MANAGER,
                 is_active=False),
            User(id=SECOND_EMPLOYEE_ID, name="Riley Fox", email="riley@example.com", role=UserRole.EMPLOYEE,
                 manager_id=OTHER_MANAGER_ID),
        ])
        await session.commit()
        yield session
