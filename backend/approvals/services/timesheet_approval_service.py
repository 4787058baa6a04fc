"""
Timesheet approval service - submit, approve, return, withdraw, unlock.
"""

import logging
from typing import Dict, List, Optional

from approvals.core.clock import Clock, SystemClock
from approvals.core.exceptions import AuthorizationError, NotFoundError, StateError, ValidationError
from approvals.core.interfaces import ApprovalRepository
from approvals.models.timesheet import TimesheetStatus
from approvals.schemas.audit import (
    AuditEntry,
    TimesheetApproved,
    TimesheetReturned,
    TimesheetSubmitted,
    TimesheetUnlocked,
    TimesheetWithdrawn,
)
from approvals.schemas.entitlement import EntitlementResult
from approvals.schemas.timesheet import (
    EDITABLE_STATUSES,
    TimesheetApprovalSummary,
    TimesheetResponse,
    TimesheetStatusPatch,
)
from approvals.services.audit_service import AuditService
from approvals.services.base_service import BaseService
from approvals.services.entitlement_service import EntitlementService

logger = logging.getLogger(__name__)

WITHDRAWABLE_STATUSES = (TimesheetStatus.SUBMITTED, TimesheetStatus.RETURNED)


def _require_reason(reason: Optional[str], action: str) -> str:
    if reason is None or not reason.strip():
        raise ValidationError(f"{action} reason is required")
    return reason.strip()


class TimesheetApprovalService(BaseService):
    """
    Service for timesheet status transitions.

    Each transition runs as one unit of work with its audit entry: both are
    committed together or neither is.
    """

    def __init__(
        self,
        repository: ApprovalRepository,
        entitlements: EntitlementService,
        audit: AuditService,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.entitlements = entitlements
        self.audit = audit
        self.clock = clock or SystemClock()

    async def _load(self, timesheet_id: int) -> TimesheetResponse:
        timesheet = await self.repository.get_timesheet(timesheet_id, for_update=True)
        if not timesheet:
            raise NotFoundError("Timesheet not found", details={"timesheet_id": timesheet_id})
        return timesheet

    async def _authorize(self, actor_id: int, timesheet: TimesheetResponse, action: str) -> EntitlementResult:
        entitlement = await self.entitlements.resolve(actor_id, timesheet.user_id)
        if not entitlement.authorized:
            raise AuthorizationError(
                f"You are not authorized to {action} this timesheet",
                details={
                    "timesheet_id": timesheet.id,
                    "user_id": actor_id,
                    "lookup_failed": entitlement.lookup_failed,
                },
            )
        return entitlement

    @staticmethod
    def _require_owner(actor_id: int, timesheet: TimesheetResponse, action: str) -> None:
        if actor_id != timesheet.user_id:
            raise AuthorizationError(
                f"Only the owner can {action} this timesheet",
                details={"timesheet_id": timesheet.id, "user_id": actor_id},
            )

    async def submit(self, timesheet_id: int, actor_id: int) -> TimesheetResponse:
        """
        Submit a Draft or Returned timesheet for approval.

        An Approved timesheet that was unlocked may be resubmitted; doing so
        discards the earlier approval.
        """
        async with self._unit_of_work():
            timesheet = await self._load(timesheet_id)
            previous = timesheet.status
            resubmission = previous == TimesheetStatus.APPROVED and not timesheet.is_locked
            if previous not in EDITABLE_STATUSES and not resubmission:
                raise StateError(
                    f"Cannot submit a {previous.value} timesheet",
                    details={"timesheet_id": timesheet_id, "status": previous.value},
                )
            self._require_owner(actor_id, timesheet, "submit")
            if await self.repository.count_entries(timesheet_id, positive_hours_only=True) == 0:
                raise ValidationError(
                    "Cannot submit a timesheet without hours",
                    details={"timesheet_id": timesheet_id},
                )

            now = self.clock.now()
            patch = TimesheetStatusPatch(status=TimesheetStatus.SUBMITTED, submitted_at=now)
            if resubmission:
                patch = TimesheetStatusPatch(
                    status=TimesheetStatus.SUBMITTED,
                    submitted_at=now,
                    approved_at=None,
                    approved_by_user_id=None,
                )
            updated = await self.repository.update_timesheet_status(timesheet_id, patch, expected_status=previous)
            await self._record(
                TimesheetSubmitted(
                    actor_id=actor_id,
                    occurred_at=now,
                    timesheet_id=timesheet_id,
                    previous_status=previous,
                    new_status=updated.status,
                ),
                entity=updated,
            )

        logger.info(
            "Timesheet submitted",
            extra={"timesheet_id": timesheet_id, "user_id": actor_id, "previous_status": previous.value},
        )
        return updated

    async def approve(self, timesheet_id: int, actor_id: int) -> TimesheetResponse:
        """Approve a Submitted timesheet and lock it."""
        async with self._unit_of_work():
            timesheet = await self._load(timesheet_id)
            if timesheet.status != TimesheetStatus.SUBMITTED:
                raise StateError(
                    "Only submitted timesheets can be approved",
                    details={"timesheet_id": timesheet_id, "status": timesheet.status.value},
                )
            entitlement = await self._authorize(actor_id, timesheet, "approve")

            now = self.clock.now()
            updated = await self.repository.update_timesheet_status(
                timesheet_id,
                TimesheetStatusPatch(
                    status=TimesheetStatus.APPROVED,
                    approved_at=now,
                    approved_by_user_id=actor_id,
                    is_locked=True,
                ),
                expected_status=TimesheetStatus.SUBMITTED,
            )
            await self._record(
                TimesheetApproved(
                    actor_id=actor_id,
                    occurred_at=now,
                    timesheet_id=timesheet_id,
                    previous_status=timesheet.status,
                    new_status=updated.status,
                    basis=entitlement.basis,
                    delegation_id=entitlement.delegation_id,
                    on_behalf_of_user_id=entitlement.on_behalf_of_user_id,
                ),
                entity=updated,
            )

        logger.info(
            "Timesheet approved",
            extra={
                "timesheet_id": timesheet_id,
                "approver_id": actor_id,
                "basis": entitlement.basis.value,
                "delegation_id": entitlement.delegation_id,
            },
        )
        return updated

    async def return_timesheet(self, timesheet_id: int, actor_id: int, reason: str) -> TimesheetResponse:
        """Send a Submitted timesheet back to its owner with a reason."""
        async with self._unit_of_work():
            timesheet = await self._load(timesheet_id)
            reason = _require_reason(reason, "Return")
            if timesheet.status != TimesheetStatus.SUBMITTED:
                raise StateError(
                    "Only submitted timesheets can be returned",
                    details={"timesheet_id": timesheet_id, "status": timesheet.status.value},
                )
            entitlement = await self._authorize(actor_id, timesheet, "return")

            updated = await self.repository.update_timesheet_status(
                timesheet_id,
                TimesheetStatusPatch(status=TimesheetStatus.RETURNED, return_reason=reason),
                expected_status=TimesheetStatus.SUBMITTED,
            )
            await self._record(
                TimesheetReturned(
                    actor_id=actor_id,
                    occurred_at=self.clock.now(),
                    timesheet_id=timesheet_id,
                    previous_status=timesheet.status,
                    new_status=updated.status,
                    notes=reason,
                    basis=entitlement.basis,
                    delegation_id=entitlement.delegation_id,
                    on_behalf_of_user_id=entitlement.on_behalf_of_user_id,
                ),
                entity=updated,
            )

        logger.info(
            "Timesheet returned",
            extra={"timesheet_id": timesheet_id, "approver_id": actor_id, "basis": entitlement.basis.value},
        )
        return updated

    async def withdraw(self, timesheet_id: int, actor_id: int) -> TimesheetResponse:
        """Owner pulls a Submitted or Returned timesheet back to Draft."""
        async with self._unit_of_work():
            timesheet = await self._load(timesheet_id)
            if timesheet.status not in WITHDRAWABLE_STATUSES:
                raise StateError(
                    f"Cannot withdraw a {timesheet.status.value} timesheet",
                    details={"timesheet_id": timesheet_id, "status": timesheet.status.value},
                )
            self._require_owner(actor_id, timesheet, "withdraw")

            updated = await self.repository.update_timesheet_status(
                timesheet_id,
                TimesheetStatusPatch(status=TimesheetStatus.DRAFT, submitted_at=None),
                expected_status=timesheet.status,
            )
            await self._record(
                TimesheetWithdrawn(
                    actor_id=actor_id,
                    occurred_at=self.clock.now(),
                    timesheet_id=timesheet_id,
                    previous_status=timesheet.status,
                    new_status=updated.status,
                ),
                entity=updated,
            )

        logger.info("Timesheet withdrawn", extra={"timesheet_id": timesheet_id, "user_id": actor_id})
        return updated

    async def unlock(self, timesheet_id: int, actor_id: int, reason: str) -> TimesheetResponse:
        """
        Lift the lock on an Approved timesheet so its owner can edit it.
        The status stays Approved until the owner resubmits.
        """
        async with self._unit_of_work():
            timesheet = await self._load(timesheet_id)
            reason = _require_reason(reason, "Unlock")
            if timesheet.status != TimesheetStatus.APPROVED or not timesheet.is_locked:
                raise StateError(
                    "Only locked approved timesheets can be unlocked",
                    details={
                        "timesheet_id": timesheet_id,
                        "status": timesheet.status.value,
                        "is_locked": timesheet.is_locked,
                    },
                )
            entitlement = await self._authorize(actor_id, timesheet, "unlock")

            updated = await self.repository.update_timesheet_status(
                timesheet_id,
                TimesheetStatusPatch(is_locked=False),
                expected_status=TimesheetStatus.APPROVED,
            )
            await self._record(
                TimesheetUnlocked(
                    actor_id=actor_id,
                    occurred_at=self.clock.now(),
                    timesheet_id=timesheet_id,
                    previous_status=timesheet.status,
                    new_status=updated.status,
                    notes=reason,
                    basis=entitlement.basis,
                ),
                entity=updated,
            )

        logger.info(
            "Timesheet unlocked",
            extra={"timesheet_id": timesheet_id, "user_id": actor_id, "basis": entitlement.basis.value},
        )
        return updated

    async def pending_approvals(
        self,
        approver_id: int,
        skip: int = 0,
        limit: int = 100,
    ) -> List[TimesheetApprovalSummary]:
        """Submitted timesheets the approver may act on now, oldest period first."""
        submitted = await self.repository.list_timesheets(status=TimesheetStatus.SUBMITTED)
        entitlements: Dict[int, EntitlementResult] = {}
        pending = []
        for timesheet in submitted:
            if timesheet.user_id not in entitlements:
                entitlements[timesheet.user_id] = await self.entitlements.resolve(approver_id, timesheet.user_id)
            entitlement = entitlements[timesheet.user_id]
            if not entitlement.authorized:
                continue
            pending.append(
                TimesheetApprovalSummary(
                    timesheet=timesheet,
                    basis=entitlement.basis,
                    delegation_id=entitlement.delegation_id,
                    on_behalf_of_user_id=entitlement.on_behalf_of_user_id,
                )
            )
        return pending[skip:skip + limit]

    async def approval_history(self, timesheet_id: int) -> List[AuditEntry]:
        return await self.audit.history_for_timesheet(timesheet_id)
