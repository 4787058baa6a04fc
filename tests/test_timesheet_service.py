"""
Timesheet editing tests against the in-memory repository.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from approvals.core.exceptions import AuthorizationError, NotFoundError, StateError, ValidationError
from approvals.models.timesheet import TimesheetStatus
from approvals.services.timesheet_service import TimesheetService, _get_week_start

from conftest import EMPLOYEE_ID, MANAGER_ID, TODAY, WEEK_START


@pytest.fixture
def timesheet_service(repository):
    return TimesheetService(repository)


@pytest.mark.parametrize(
    "any_date",
    [date(2025, 1, 5), date(2025, 1, 6), date(2025, 1, 8), date(2025, 1, 11)],
)
def test_week_starts_on_sunday(any_date):
    assert _get_week_start(any_date) == WEEK_START


@pytest.mark.asyncio
async def test_get_or_create_uses_the_injected_repository(timesheet_service, repository):
    timesheet = await timesheet_service.get_or_create_timesheet(EMPLOYEE_ID, date(2025, 1, 9))
    again = await timesheet_service.get_or_create_timesheet(EMPLOYEE_ID, TODAY)

    assert again.id == timesheet.id
    assert timesheet.period_start == WEEK_START
    assert timesheet.period_end == WEEK_START + timedelta(days=6)
    assert timesheet.status == TimesheetStatus.DRAFT
    assert list(repository.timesheets) == [timesheet.id]
    assert repository.commits == 2


@pytest.mark.asyncio
async def test_save_entry_replaces_the_day(timesheet_service, repository):
    timesheet = await timesheet_service.get_or_create_timesheet(EMPLOYEE_ID, TODAY)

    tuesday = await timesheet_service.save_entry(timesheet.id, EMPLOYEE_ID, TODAY + timedelta(days=1), Decimal("6"))
    first = await timesheet_service.save_entry(timesheet.id, EMPLOYEE_ID, TODAY, Decimal("7.5"), "site visit")
    replaced = await timesheet_service.save_entry(timesheet.id, EMPLOYEE_ID, TODAY, Decimal("8"))

    assert replaced.id == first.id
    assert replaced.notes is None
    entries = await timesheet_service.list_entries(timesheet.id)
    assert [(e.work_date, e.hours_worked) for e in entries] == [(TODAY, Decimal("8")), (tuesday.work_date, Decimal("6"))]
    assert await repository.count_entries(timesheet.id, positive_hours_only=True) == 2


@pytest.mark.asyncio
async def test_rejected_entry_is_rolled_back(timesheet_service, repository):
    timesheet = repository.add_timesheet(EMPLOYEE_ID, WEEK_START, hours=[0, 8])

    with pytest.raises(ValidationError) as exc_info:
        await timesheet_service.save_entry(timesheet.id, EMPLOYEE_ID, TODAY, Decimal("25"))

    assert [d["field"] for d in exc_info.value.details] == ["hours_worked"]
    assert repository.rollbacks == 1
    assert [e.hours_worked for e in await timesheet_service.list_entries(timesheet.id)] == [Decimal("0"), Decimal("8")]


@pytest.mark.asyncio
async def test_save_entry_check_order(timesheet_service, repository):
    submitted = repository.add_timesheet(EMPLOYEE_ID, WEEK_START, hours=[8], status=TimesheetStatus.SUBMITTED)

    with pytest.raises(NotFoundError):
        await timesheet_service.save_entry(9999, EMPLOYEE_ID, TODAY, Decimal("1"))
    with pytest.raises(ValidationError):
        await timesheet_service.save_entry(submitted.id, MANAGER_ID, WEEK_START - timedelta(days=1), Decimal("1"))
    # State is checked before ownership
    with pytest.raises(StateError):
        await timesheet_service.save_entry(submitted.id, MANAGER_ID, TODAY, Decimal("1"))


@pytest.mark.asyncio
async def test_unlocked_approval_is_editable_by_owner_only(timesheet_service, repository):
    timesheet = repository.add_timesheet(
        EMPLOYEE_ID, WEEK_START, hours=[8], status=TimesheetStatus.APPROVED, is_locked=False
    )

    with pytest.raises(AuthorizationError):
        await timesheet_service.save_entry(timesheet.id, MANAGER_ID, TODAY, Decimal("1"))

    entry = await timesheet_service.save_entry(timesheet.id, EMPLOYEE_ID, TODAY, Decimal("4"))
    assert entry.user_id == EMPLOYEE_ID


@pytest.mark.asyncio
async def test_locked_approval_is_read_only(timesheet_service, repository):
    timesheet = repository.add_timesheet(
        EMPLOYEE_ID, WEEK_START, hours=[8], status=TimesheetStatus.APPROVED, is_locked=True
    )

    with pytest.raises(StateError):
        await timesheet_service.save_entry(timesheet.id, EMPLOYEE_ID, TODAY, Decimal("1"))
