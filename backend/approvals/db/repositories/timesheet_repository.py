"""
Timesheet repository for database operations.
"""

from typing import Iterable, Optional, List
from datetime import date, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from approvals.core.exceptions import StateError
from approvals.db.repositories.base_repository import BaseRepository, translate_db_errors
from approvals.models.timesheet import Timesheet, TimesheetStatus

PERIOD_LENGTH_DAYS = 7


class TimesheetRepository(BaseRepository[Timesheet]):
    """Repository for timesheet operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Timesheet, session)

    @translate_db_errors
    async def get_by_user_and_period(self, user_id: int, period_start: date) -> Optional[Timesheet]:
        """Get timesheet by user and week."""
        result = await self.session.execute(
            select(Timesheet).where(
                Timesheet.user_id == user_id,
                Timesheet.period_start == period_start,
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: int, period_start: date) -> Timesheet:
        """Get existing timesheet or create a Draft one for the week."""
        existing = await self.get_by_user_and_period(user_id, period_start)
        if existing:
            return existing
        return await self.create(
            user_id=user_id,
            period_start=period_start,
            period_end=period_start + timedelta(days=PERIOD_LENGTH_DAYS - 1),
            status=TimesheetStatus.DRAFT,
            is_locked=False,
        )

    @translate_db_errors
    async def list_filtered(
        self,
        status: Optional[TimesheetStatus] = None,
        user_ids: Optional[Iterable[int]] = None,
    ) -> List[Timesheet]:
        """List timesheets, oldest period first."""
        query = select(Timesheet)
        if status is not None:
            query = query.where(Timesheet.status == status)
        if user_ids is not None:
            query = query.where(Timesheet.user_id.in_(list(user_ids)))
        query = query.order_by(Timesheet.period_start.asc(), Timesheet.id.asc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    @translate_db_errors
    async def update_if_status(
        self,
        id: int,
        expected_status: Optional[TimesheetStatus],
        **values,
    ) -> Timesheet:
        """Update the row only while its status still equals ``expected_status``."""
        query = update(Timesheet).where(Timesheet.id == id)
        if expected_status is not None:
            query = query.where(Timesheet.status == expected_status)
        result = await self.session.execute(query.values(**values))
        if result.rowcount == 0:
            raise StateError(
                "Timesheet was modified concurrently",
                details={"timesheet_id": id, "expected_status": getattr(expected_status, "value", None)},
            )
        await self.session.flush()
        return await self.get(id)
