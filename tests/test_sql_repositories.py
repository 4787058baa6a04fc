"""
SQLAlchemy repository tests against in-memory SQLite.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from approvals.core.exceptions import StateError
from approvals.db.repositories.approval_repository import SqlApprovalRepository
from approvals.db.repositories.audit_log_repository import SqlAuditSink
from approvals.db.repositories.timesheet_repository import TimesheetRepository
from approvals.db.repositories.user_repository import SqlOrgRelationship, SqlUserDirectory
from approvals.models.timesheet import TimeEntry, TimesheetStatus
from approvals.models.user import UserRole
from approvals.schemas.audit import DelegationCreated, TimesheetApproved
from approvals.schemas.delegation import DelegationCreate, DelegationFilter, DelegationRevocation
from approvals.schemas.entitlement import ApprovalBasis
from approvals.schemas.timesheet import TimesheetStatusPatch

from conftest import (
    ADMIN_ID,
    DELEGATE_ID,
    EMPLOYEE_ID,
    INACTIVE_ID,
    LEADER_ID,
    MANAGER_ID,
    OTHER_MANAGER_ID,
    WEEK_START,
)

NOW = datetime(2025, 1, 6, 9, 30, tzinfo=timezone.utc)


def _delegation(delegator, delegate, start, end, created_at=NOW):
    return DelegationCreate(
        delegator_id=delegator,
        delegate_id=delegate,
        start_date=start,
        end_date=end,
        reason="PTO",
        created_by_id=delegator,
        created_at=created_at,
    )


async def _timesheet_with_hours(session, hours):
    timesheet = await TimesheetRepository(session).get_or_create(EMPLOYEE_ID, WEEK_START)
    for offset, value in enumerate(hours):
        session.add(TimeEntry(
            timesheet_id=timesheet.id,
            user_id=EMPLOYEE_ID,
            work_date=WEEK_START + timedelta(days=offset),
            hours_worked=Decimal(str(value)),
        ))
    await session.flush()
    return timesheet


@pytest.mark.asyncio
async def test_delegation_queries(test_db_session):
    repo = SqlApprovalRepository(test_db_session)
    first = await repo.insert_delegation(_delegation(MANAGER_ID, DELEGATE_ID, date(2025, 1, 1), date(2025, 1, 10)))
    second = await repo.insert_delegation(
        _delegation(OTHER_MANAGER_ID, DELEGATE_ID, date(2024, 12, 30), date(2025, 1, 7), NOW + timedelta(minutes=1))
    )
    await repo.insert_delegation(_delegation(MANAGER_ID, ADMIN_ID, date(2025, 2, 1), date(2025, 2, 3)))
    await repo.commit()

    newest_first = await repo.query_delegations(DelegationFilter(delegate_id=DELEGATE_ID))
    assert [d.id for d in newest_first] == [second.id, first.id]

    in_force = await repo.query_delegations(
        DelegationFilter(delegate_id=DELEGATE_ID, active_only=True, as_of=date(2025, 1, 8), order="start_ascending")
    )
    assert [d.id for d in in_force] == [first.id]

    locked = await repo.query_delegations(DelegationFilter(delegator_id=MANAGER_ID, active_only=True), for_update=True)
    assert len(locked) == 2
    assert first.is_active


@pytest.mark.asyncio
async def test_update_delegation_is_guarded(test_db_session):
    repo = SqlApprovalRepository(test_db_session)
    delegation = await repo.insert_delegation(_delegation(MANAGER_ID, DELEGATE_ID, date(2025, 1, 1), date(2025, 1, 10)))
    patch = DelegationRevocation(revoked_at=NOW, revoked_by_id=ADMIN_ID)

    revoked = await repo.update_delegation(delegation.id, patch)
    assert not revoked.is_active
    assert revoked.revoked_by_id == ADMIN_ID

    with pytest.raises(StateError):
        await repo.update_delegation(delegation.id, patch, expected_active=True)


@pytest.mark.asyncio
async def test_timesheet_status_update_is_compare_and_set(test_db_session):
    repo = SqlApprovalRepository(test_db_session)
    timesheet = await _timesheet_with_hours(test_db_session, [8])

    submitted = await repo.update_timesheet_status(
        timesheet.id,
        TimesheetStatusPatch(status=TimesheetStatus.SUBMITTED, submitted_at=NOW),
        expected_status=TimesheetStatus.DRAFT,
    )
    assert submitted.status == TimesheetStatus.SUBMITTED
    assert submitted.approved_at is None

    with pytest.raises(StateError):
        await repo.update_timesheet_status(
            timesheet.id,
            TimesheetStatusPatch(status=TimesheetStatus.APPROVED),
            expected_status=TimesheetStatus.DRAFT,
        )
    assert (await repo.get_timesheet(timesheet.id)).status == TimesheetStatus.SUBMITTED


@pytest.mark.asyncio
async def test_count_entries(test_db_session):
    repo = SqlApprovalRepository(test_db_session)
    timesheet = await _timesheet_with_hours(test_db_session, [0, "0.25", 0])

    assert await repo.count_entries(timesheet.id) == 3
    assert await repo.count_entries(timesheet.id, positive_hours_only=True) == 1


@pytest.mark.asyncio
async def test_timesheet_get_or_create_is_one_per_week(test_db_session):
    repo = TimesheetRepository(test_db_session)

    first = await repo.get_or_create(EMPLOYEE_ID, WEEK_START)
    again = await repo.get_or_create(EMPLOYEE_ID, WEEK_START)

    assert first.id == again.id
    assert first.period_end == WEEK_START + timedelta(days=6)
    assert first.status == TimesheetStatus.DRAFT


@pytest.mark.asyncio
async def test_list_timesheets_filters(test_db_session):
    repo = SqlApprovalRepository(test_db_session)
    timesheet = await _timesheet_with_hours(test_db_session, [8])
    await repo.update_timesheet_status(timesheet.id, TimesheetStatusPatch(status=TimesheetStatus.SUBMITTED))

    assert [t.id for t in await repo.list_timesheets(status=TimesheetStatus.SUBMITTED)] == [timesheet.id]
    assert await repo.list_timesheets(status=TimesheetStatus.APPROVED) == []
    assert await repo.list_timesheets(user_ids=[MANAGER_ID]) == []


@pytest.mark.asyncio
async def test_audit_rows_read_back_as_typed_entries(test_db_session):
    repo = SqlApprovalRepository(test_db_session)
    sink = SqlAuditSink(test_db_session)
    delegation = await repo.insert_delegation(_delegation(MANAGER_ID, DELEGATE_ID, date(2025, 1, 1), date(2025, 1, 10)))
    timesheet = await _timesheet_with_hours(test_db_session, [8])

    await sink.append(DelegationCreated(
        actor_id=MANAGER_ID,
        occurred_at=NOW,
        delegation_id=delegation.id,
        delegator_id=MANAGER_ID,
        delegate_id=DELEGATE_ID,
        start_date=delegation.start_date,
        end_date=delegation.end_date,
        reason="PTO",
    ))
    await sink.append(TimesheetApproved(
        actor_id=DELEGATE_ID,
        occurred_at=NOW + timedelta(minutes=1),
        timesheet_id=timesheet.id,
        previous_status=TimesheetStatus.SUBMITTED,
        new_status=TimesheetStatus.APPROVED,
        basis=ApprovalBasis.DELEGATION,
        delegation_id=delegation.id,
        on_behalf_of_user_id=MANAGER_ID,
    ))
    await repo.commit()

    [approved] = await sink.entries_for_timesheet(timesheet.id)
    assert isinstance(approved, TimesheetApproved)
    assert approved.basis == ApprovalBasis.DELEGATION
    assert approved.previous_status == TimesheetStatus.SUBMITTED

    history = await sink.entries_for_delegation(delegation.id)
    assert [entry.action for entry in history] == ["CREATED", "APPROVED"]
    assert history[0].reason == "PTO"


@pytest.mark.asyncio
async def test_user_directory(test_db_session):
    directory = SqlUserDirectory(test_db_session)

    employee = await directory.get_user(EMPLOYEE_ID)
    assert employee.role == UserRole.EMPLOYEE
    assert employee.manager_id == MANAGER_ID
    assert await directory.get_user(999) is None

    managers = await directory.list_users(roles=[UserRole.MANAGER])
    assert [u.id for u in managers] == [DELEGATE_ID, MANAGER_ID, OTHER_MANAGER_ID]
    everyone = await directory.list_users(roles=[UserRole.MANAGER], active_only=False)
    assert INACTIVE_ID in [u.id for u in everyone]


@pytest.mark.asyncio
async def test_org_relationship_reads_manager_column(test_db_session, test_session_maker):
    org = SqlOrgRelationship(test_session_maker)

    assert await org.get_direct_manager(EMPLOYEE_ID) == MANAGER_ID
    assert await org.get_direct_manager(MANAGER_ID) == LEADER_ID
    assert await org.get_direct_manager(ADMIN_ID) is None
    assert await org.get_direct_manager(999) is None
