"""
Time entry repository for database operations.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from approvals.db.repositories.base_repository import BaseRepository, translate_db_errors
from approvals.models.timesheet import TimeEntry


class TimeEntryRepository(BaseRepository[TimeEntry]):
    """Repository for time entry operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(TimeEntry, session)

    @translate_db_errors
    async def list_by_timesheet(self, timesheet_id: int) -> List[TimeEntry]:
        """List entries for a timesheet, ordered by work date."""
        result = await self.session.execute(
            select(TimeEntry)
            .where(TimeEntry.timesheet_id == timesheet_id)
            .order_by(TimeEntry.work_date, TimeEntry.id)
        )
        return list(result.scalars().all())

    @translate_db_errors
    async def get_for_day(self, timesheet_id: int, work_date: date) -> Optional[TimeEntry]:
        result = await self.session.execute(
            select(TimeEntry).where(
                TimeEntry.timesheet_id == timesheet_id,
                TimeEntry.work_date == work_date,
            )
        )
        return result.scalars().first()

    @translate_db_errors
    async def count_by_timesheet(self, timesheet_id: int, positive_hours_only: bool = False) -> int:
        """Count entries, optionally only those with hours above zero."""
        query = select(func.count(TimeEntry.id)).where(TimeEntry.timesheet_id == timesheet_id)
        if positive_hours_only:
            query = query.where(TimeEntry.hours_worked > Decimal("0"))
        result = await self.session.execute(query)
        return int(result.scalar_one())
