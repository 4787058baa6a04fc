"""
SQLAlchemy implementation of the approvals repository contract.
Combines the delegation, timesheet and time entry repositories over one session.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.core.interfaces import ApprovalRepository
from approvals.db.repositories.base_repository import translate_db_errors
from approvals.db.repositories.delegation_repository import DelegationRepository
from approvals.db.repositories.time_entry_repository import TimeEntryRepository
from approvals.db.repositories.timesheet_repository import TimesheetRepository
from approvals.models.timesheet import TimesheetStatus
from approvals.schemas.delegation import (
    DelegationCreate,
    DelegationFilter,
    DelegationResponse,
    DelegationRevocation,
)
from approvals.schemas.timesheet import (
    TimeEntryCreate,
    TimeEntryResponse,
    TimesheetResponse,
    TimesheetStatusPatch,
)

logger = logging.getLogger(__name__)


class SqlApprovalRepository(ApprovalRepository):
    """Repository backed by one AsyncSession; commit/rollback end its unit of work."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.delegation_repo = DelegationRepository(session)
        self.timesheet_repo = TimesheetRepository(session)
        self.entry_repo = TimeEntryRepository(session)

    async def get_delegation(self, delegation_id: int) -> Optional[DelegationResponse]:
        delegation = await self.delegation_repo.get(delegation_id)
        return DelegationResponse.model_validate(delegation) if delegation else None

    async def insert_delegation(self, record: DelegationCreate) -> DelegationResponse:
        delegation = await self.delegation_repo.create(**record.model_dump(), is_active=True)
        return DelegationResponse.model_validate(delegation)

    async def update_delegation(
        self,
        delegation_id: int,
        patch: DelegationRevocation,
        expected_active: bool = True,
    ) -> DelegationResponse:
        delegation = await self.delegation_repo.update_if_active(
            delegation_id, expected_active, **patch.model_dump()
        )
        return DelegationResponse.model_validate(delegation)

    async def query_delegations(
        self,
        filter: DelegationFilter,
        for_update: bool = False,
    ) -> List[DelegationResponse]:
        if for_update and filter.delegator_id is not None:
            await self.delegation_repo.lock_delegator(filter.delegator_id)
        delegations = await self.delegation_repo.query(filter, for_update=for_update)
        return [DelegationResponse.model_validate(d) for d in delegations]

    async def get_timesheet(self, timesheet_id: int, for_update: bool = False) -> Optional[TimesheetResponse]:
        timesheet = await self.timesheet_repo.get(timesheet_id, for_update=for_update)
        return TimesheetResponse.model_validate(timesheet) if timesheet else None

    async def update_timesheet_status(
        self,
        timesheet_id: int,
        patch: TimesheetStatusPatch,
        expected_status: Optional[TimesheetStatus] = None,
    ) -> TimesheetResponse:
        timesheet = await self.timesheet_repo.update_if_status(
            timesheet_id, expected_status, **patch.changes()
        )
        return TimesheetResponse.model_validate(timesheet)

    async def count_entries(self, timesheet_id: int, positive_hours_only: bool = False) -> int:
        return await self.entry_repo.count_by_timesheet(timesheet_id, positive_hours_only)

    async def list_timesheets(
        self,
        status: Optional[TimesheetStatus] = None,
        user_ids: Optional[Iterable[int]] = None,
    ) -> List[TimesheetResponse]:
        timesheets = await self.timesheet_repo.list_filtered(status, user_ids)
        return [TimesheetResponse.model_validate(t) for t in timesheets]

    async def get_or_create_timesheet(self, user_id: int, period_start: date) -> Tuple[TimesheetResponse, bool]:
        timesheet = await self.timesheet_repo.get_by_user_and_period(user_id, period_start)
        created = timesheet is None
        if created:
            timesheet = await self.timesheet_repo.get_or_create(user_id, period_start)
        return TimesheetResponse.model_validate(timesheet), created

    async def list_entries(self, timesheet_id: int) -> List[TimeEntryResponse]:
        entries = await self.entry_repo.list_by_timesheet(timesheet_id)
        return [TimeEntryResponse.model_validate(e) for e in entries]

    @translate_db_errors
    async def save_entry(self, timesheet_id: int, user_id: int, values: TimeEntryCreate) -> TimeEntryResponse:
        entry = await self.entry_repo.get_for_day(timesheet_id, values.work_date)
        if entry:
            entry.hours_worked = values.hours_worked
            entry.notes = values.notes
            await self.session.flush()
        else:
            entry = await self.entry_repo.create(timesheet_id=timesheet_id, user_id=user_id, **values.model_dump())
        return TimeEntryResponse.model_validate(entry)

    @translate_db_errors
    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> bool:
        await self.session.rollback()
        return True
