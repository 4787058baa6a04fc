"""
Entitlement result schemas.
"""

from pydantic import BaseModel
from typing import Optional
from enum import Enum


class ApprovalBasis(str, Enum):
    """Why an approver is (or is not) entitled."""
    DIRECT_MANAGER = "DirectManager"
    DELEGATION = "Delegation"
    ADMIN = "Admin"
    NONE = "None"


class EntitlementResult(BaseModel):
    """Transient answer to "may this approver act on that employee's timesheet now"."""
    authorized: bool
    basis: ApprovalBasis = ApprovalBasis.NONE
    delegation_id: Optional[int] = None
    on_behalf_of_user_id: Optional[int] = None
    lookup_failed: bool = False

    @classmethod
    def denied(cls, lookup_failed: bool = False) -> "EntitlementResult":
        return cls(authorized=False, basis=ApprovalBasis.NONE, lookup_failed=lookup_failed)
