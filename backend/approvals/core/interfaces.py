"""
Collaborator contracts consumed by the approvals core.

Implementations live in ``approvals.db.repositories`` (SQLAlchemy) and
``approvals.core.integrations`` (org chart). All calls are awaited.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional, Tuple

from approvals.models.timesheet import TimesheetStatus
from approvals.models.user import UserRole
from approvals.schemas.audit import AuditEntry
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
from approvals.schemas.user import UserRecord


class ApprovalRepository(ABC):
    """
    Persistence for delegations, timesheet headers and their daily entries.

    Writes made through one repository instance form a single unit that becomes
    durable on ``commit`` and is discarded by ``rollback``. The store must keep
    check-then-write sequences serializable: ``for_update`` reads lock what they
    read, and the guarded updates only apply when the guard still holds.
    """

    @abstractmethod
    async def get_delegation(self, delegation_id: int) -> Optional[DelegationResponse]:
        ...

    @abstractmethod
    async def insert_delegation(self, record: DelegationCreate) -> DelegationResponse:
        ...

    @abstractmethod
    async def update_delegation(
        self,
        delegation_id: int,
        patch: DelegationRevocation,
        expected_active: bool = True,
    ) -> DelegationResponse:
        """Apply ``patch`` if ``is_active`` still equals ``expected_active``, else raise StateError."""
        ...

    @abstractmethod
    async def query_delegations(
        self,
        filter: DelegationFilter,
        for_update: bool = False,
    ) -> List[DelegationResponse]:
        ...

    @abstractmethod
    async def get_timesheet(self, timesheet_id: int, for_update: bool = False) -> Optional[TimesheetResponse]:
        ...

    @abstractmethod
    async def update_timesheet_status(
        self,
        timesheet_id: int,
        patch: TimesheetStatusPatch,
        expected_status: Optional[TimesheetStatus] = None,
    ) -> TimesheetResponse:
        """Apply ``patch`` if the status still equals ``expected_status``, else raise StateError."""
        ...

    @abstractmethod
    async def count_entries(self, timesheet_id: int, positive_hours_only: bool = False) -> int:
        ...

    @abstractmethod
    async def list_timesheets(
        self,
        status: Optional[TimesheetStatus] = None,
        user_ids: Optional[Iterable[int]] = None,
    ) -> List[TimesheetResponse]:
        """Timesheets ordered by period_start, then id."""
        ...

    @abstractmethod
    async def get_or_create_timesheet(self, user_id: int, period_start: date) -> Tuple[TimesheetResponse, bool]:
        """The user's timesheet for the week starting ``period_start``; True when a Draft was created."""
        ...

    @abstractmethod
    async def list_entries(self, timesheet_id: int) -> List[TimeEntryResponse]:
        """Entries ordered by work_date, then id."""
        ...

    @abstractmethod
    async def save_entry(self, timesheet_id: int, user_id: int, values: TimeEntryCreate) -> TimeEntryResponse:
        """Replace the entry for ``values.work_date`` or add one; one entry per day."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> bool:
        """Discard uncommitted writes. Returns False if they could not be undone."""
        ...


class UserDirectory(ABC):
    """Read access to users, their roles and active flags."""

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def list_users(
        self,
        roles: Optional[Iterable[UserRole]] = None,
        active_only: bool = True,
    ) -> List[UserRecord]:
        """Users ordered by name."""
        ...


class OrgRelationship(ABC):
    """Manager-of lookups. Implementations may raise ServiceUnavailableError."""

    @abstractmethod
    async def get_direct_manager(self, user_id: int) -> Optional[int]:
        ...


class AuditSink(ABC):
    """Append-only destination for audit entries. Must never drop an entry silently."""

    @abstractmethod
    async def append(self, entry: AuditEntry) -> None:
        ...


class AuditReader(ABC):
    """Read side of the audit trail, oldest entry first."""

    @abstractmethod
    async def entries_for_timesheet(self, timesheet_id: int) -> List[AuditEntry]:
        ...

    @abstractmethod
    async def entries_for_delegation(self, delegation_id: int) -> List[AuditEntry]:
        ...
