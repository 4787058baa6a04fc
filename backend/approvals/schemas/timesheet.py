"""
Timesheet Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

from approvals.models.timesheet import TimesheetStatus
from approvals.schemas.entitlement import ApprovalBasis

EDITABLE_STATUSES = (TimesheetStatus.DRAFT, TimesheetStatus.RETURNED)


class TimesheetResponse(BaseModel):
    """Timesheet header as stored."""
    id: int
    user_id: int
    period_start: date
    period_end: date
    status: TimesheetStatus
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by_user_id: Optional[int] = None
    return_reason: Optional[str] = None
    is_locked: bool = False

    class Config:
        from_attributes = True

    @property
    def is_editable(self) -> bool:
        """Owner may change entries: Draft, Returned, or an unlocked approval."""
        if self.status in EDITABLE_STATUSES:
            return True
        return self.status == TimesheetStatus.APPROVED and not self.is_locked


class TimesheetStatusPatch(BaseModel):
    """
    Fields changed by a status transition.
    Only fields explicitly set are written.
    """
    status: Optional[TimesheetStatus] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by_user_id: Optional[int] = None
    return_reason: Optional[str] = None
    is_locked: Optional[bool] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TimeEntryResponse(BaseModel):
    """Single day of hours on a timesheet."""
    id: int
    timesheet_id: int
    user_id: int
    work_date: date
    hours_worked: Decimal
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class TimeEntryCreate(BaseModel):
    """Values for a new or replaced time entry."""
    work_date: date
    hours_worked: Decimal = Field(..., ge=0, le=24)
    notes: Optional[str] = Field(None, max_length=2000)


class TimesheetApprovalSummary(BaseModel):
    """A submitted timesheet awaiting the approver, with the basis that entitles them."""
    timesheet: TimesheetResponse
    basis: ApprovalBasis
    delegation_id: Optional[int] = None
    on_behalf_of_user_id: Optional[int] = None
