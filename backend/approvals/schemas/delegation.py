"""
Delegation Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import date, datetime

from approvals.utils.date_interval import DateInterval


class DelegationCreate(BaseModel):
    """Validated values for a new delegation row."""
    delegator_id: int
    delegate_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=500)
    created_by_id: int
    created_at: datetime


class DelegationResponse(BaseModel):
    """Delegation as stored."""
    id: int
    delegator_id: int
    delegate_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = None
    is_active: bool
    created_by_id: int
    created_at: datetime
    revoked_at: Optional[datetime] = None
    revoked_by_id: Optional[int] = None

    class Config:
        from_attributes = True

    @property
    def interval(self) -> DateInterval:
        return DateInterval(self.start_date, self.end_date)


class DelegationRevocation(BaseModel):
    """Patch applied when a delegation is revoked."""
    is_active: Literal[False] = False
    revoked_at: datetime
    revoked_by_id: int


class DelegationFilter(BaseModel):
    """
    Criteria for ``ApprovalRepository.query_delegations``.

    ``as_of`` selects delegations whose window contains that date.
    """
    delegator_id: Optional[int] = None
    delegate_id: Optional[int] = None
    active_only: bool = False
    as_of: Optional[date] = None
    order: Literal["newest_first", "start_ascending"] = "newest_first"


class DelegationConflict(BaseModel):
    """The existing delegation that blocks a new one."""
    delegation_id: int
    delegate_id: int
    start_date: date
    end_date: date
