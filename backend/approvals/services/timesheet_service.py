"""
Timesheet service with business logic for weekly time entry.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

import pydantic

from approvals.core.exceptions import AuthorizationError, NotFoundError, StateError, ValidationError
from approvals.core.interfaces import ApprovalRepository
from approvals.schemas.timesheet import TimeEntryCreate, TimeEntryResponse, TimesheetResponse
from approvals.services.base_service import BaseService

logger = logging.getLogger(__name__)


def _get_week_start(d: date) -> date:
    """Get Sunday of the week for a given date."""
    days_since_sunday = (d.weekday() + 1) % 7
    return d - timedelta(days=days_since_sunday)


class TimesheetService(BaseService):
    """Service for timesheet headers and their daily entries."""

    def __init__(self, repository: ApprovalRepository):
        self.repository = repository

    async def get_or_create_timesheet(self, user_id: int, any_date: date) -> TimesheetResponse:
        """Get the user's timesheet for the week containing ``any_date``, creating a Draft if needed."""
        week_start = _get_week_start(any_date)
        async with self._unit_of_work():
            response, created = await self.repository.get_or_create_timesheet(user_id, week_start)
        if created:
            logger.info(
                "Timesheet created",
                extra={"timesheet_id": response.id, "user_id": user_id, "period_start": week_start.isoformat()},
            )
        return response

    async def get_timesheet(self, timesheet_id: int) -> Optional[TimesheetResponse]:
        return await self.repository.get_timesheet(timesheet_id)

    async def list_entries(self, timesheet_id: int) -> List[TimeEntryResponse]:
        return await self.repository.list_entries(timesheet_id)

    async def save_entry(
        self,
        timesheet_id: int,
        actor_id: int,
        work_date: date,
        hours_worked: Decimal,
        notes: Optional[str] = None,
    ) -> TimeEntryResponse:
        """
        Create or replace the owner's entry for one day.

        Raises:
            NotFoundError: timesheet does not exist
            ValidationError: hours outside [0, 24] or a date outside the period
            StateError: the timesheet is Submitted, or Approved and locked
            AuthorizationError: actor is not the owner
        """
        async with self._unit_of_work():
            timesheet = await self.repository.get_timesheet(timesheet_id, for_update=True)
            if not timesheet:
                raise NotFoundError("Timesheet not found", details={"timesheet_id": timesheet_id})
            try:
                values = TimeEntryCreate(work_date=work_date, hours_worked=hours_worked, notes=notes)
            except pydantic.ValidationError as exc:
                raise ValidationError(
                    "Invalid time entry",
                    details=[{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in exc.errors()],
                ) from exc
            if not timesheet.period_start <= values.work_date <= timesheet.period_end:
                raise ValidationError(
                    "Work date is outside the timesheet period",
                    details={
                        "work_date": values.work_date.isoformat(),
                        "period_start": timesheet.period_start.isoformat(),
                        "period_end": timesheet.period_end.isoformat(),
                    },
                )
            if not timesheet.is_editable:
                raise StateError(
                    "Cannot edit timesheet in current status",
                    details={
                        "timesheet_id": timesheet_id,
                        "status": timesheet.status.value,
                        "is_locked": timesheet.is_locked,
                    },
                )
            if actor_id != timesheet.user_id:
                raise AuthorizationError(
                    "Only the owner can edit this timesheet",
                    details={"timesheet_id": timesheet_id, "user_id": actor_id},
                )

            response = await self.repository.save_entry(timesheet_id, timesheet.user_id, values)

        logger.debug(
            "Time entry saved",
            extra={"timesheet_id": timesheet_id, "work_date": values.work_date.isoformat()},
        )
        return response
