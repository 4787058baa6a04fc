"""
Database models.
Import all models here to ensure they're registered with Base.
"""

from approvals.models.user import User, UserRole
from approvals.models.delegation import ApprovalDelegation
from approvals.models.timesheet import Timesheet, TimeEntry, TimesheetStatus
from approvals.models.audit import ApprovalAuditLog

__all__ = [
    "User",
    "UserRole",
    "ApprovalDelegation",
    "Timesheet",
    "TimeEntry",
    "TimesheetStatus",
    "ApprovalAuditLog",
]
