"""
Role predicates shared by delegate eligibility, revocation and entitlement checks.
"""

from typing import FrozenSet, Optional, Union

from approvals.models.user import UserRole

APPROVAL_CAPABLE_ROLES: FrozenSet[UserRole] = frozenset(
    {UserRole.MANAGER, UserRole.TIMESHEET_ADMIN, UserRole.LEADERSHIP}
)
ADMINISTRATOR_ROLE: UserRole = UserRole.TIMESHEET_ADMIN


def _coerce(role: Optional[Union[UserRole, str]]) -> Optional[UserRole]:
    if role is None or isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def is_approval_capable(role: Optional[Union[UserRole, str]]) -> bool:
    """True if the role may approve timesheets and therefore receive delegations."""
    return _coerce(role) in APPROVAL_CAPABLE_ROLES


def is_administrator(role: Optional[Union[UserRole, str]]) -> bool:
    """True for the top administrative role."""
    return _coerce(role) == ADMINISTRATOR_ROLE
