"""
Audit entry schemas.
One variant per action kind, discriminated by ``action``.
"""

from pydantic import BaseModel, Field, TypeAdapter
from typing import Annotated, Literal, Optional, Union
from datetime import date, datetime

from approvals.models.timesheet import TimesheetStatus
from approvals.schemas.entitlement import ApprovalBasis


class AuditEntryBase(BaseModel):
    """Fields every audit entry carries."""
    actor_id: int
    occurred_at: datetime

    class Config:
        from_attributes = True
        frozen = True


class DelegationCreated(AuditEntryBase):
    action: Literal["CREATED"] = "CREATED"
    delegation_id: int
    delegator_id: int
    delegate_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = None


class DelegationRevoked(AuditEntryBase):
    action: Literal["REVOKED"] = "REVOKED"
    delegation_id: int
    delegator_id: int
    delegate_id: int
    start_date: date
    end_date: date


class TimesheetTransition(AuditEntryBase):
    """Shared shape of timesheet status changes."""
    timesheet_id: int
    previous_status: TimesheetStatus
    new_status: TimesheetStatus


class TimesheetSubmitted(TimesheetTransition):
    action: Literal["SUBMITTED"] = "SUBMITTED"


class TimesheetApproved(TimesheetTransition):
    action: Literal["APPROVED"] = "APPROVED"
    basis: ApprovalBasis
    delegation_id: Optional[int] = None
    on_behalf_of_user_id: Optional[int] = None


class TimesheetReturned(TimesheetTransition):
    action: Literal["RETURNED"] = "RETURNED"
    notes: str
    basis: ApprovalBasis
    delegation_id: Optional[int] = None
    on_behalf_of_user_id: Optional[int] = None


class TimesheetWithdrawn(TimesheetTransition):
    action: Literal["WITHDRAWN"] = "WITHDRAWN"


class TimesheetUnlocked(TimesheetTransition):
    action: Literal["UNLOCKED"] = "UNLOCKED"
    notes: str
    basis: ApprovalBasis


AuditEntry = Annotated[
    Union[
        DelegationCreated,
        DelegationRevoked,
        TimesheetSubmitted,
        TimesheetApproved,
        TimesheetReturned,
        TimesheetWithdrawn,
        TimesheetUnlocked,
    ],
    Field(discriminator="action"),
]

audit_entry_adapter = TypeAdapter(AuditEntry)
