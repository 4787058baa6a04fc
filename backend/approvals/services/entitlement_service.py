"""
Entitlement resolution: may an approver act on an employee's timesheet right now.
"""

import logging
from datetime import date
from typing import Optional

from approvals.core.clock import Clock, SystemClock
from approvals.core.exceptions import ServiceUnavailableError
from approvals.core.interfaces import OrgRelationship, UserDirectory
from approvals.core.roles import is_administrator
from approvals.schemas.entitlement import ApprovalBasis, EntitlementResult
from approvals.services.delegation_service import DelegationService

logger = logging.getLogger(__name__)


class EntitlementService:
    """
    Resolves approval entitlement from the org chart and active delegations.

    Precedence, first match wins: administrator, direct manager, a delegation
    from the employee's direct manager to the approver. A delegate cannot pass
    the authority on, so delegation reaches exactly one level.

    Org lookups may be served from a TTL cache; a decision can therefore lag a
    real manager change by that TTL.
    """

    def __init__(
        self,
        users: UserDirectory,
        org: OrgRelationship,
        delegations: DelegationService,
        clock: Optional[Clock] = None,
    ):
        self.users = users
        self.org = org
        self.delegations = delegations
        self.clock = clock or SystemClock()

    async def resolve(
        self,
        approver_id: int,
        employee_id: int,
        as_of: Optional[date] = None,
    ) -> EntitlementResult:
        """
        Never raises for an unreachable collaborator: the result is then
        denied with ``lookup_failed`` set.
        """
        as_of = as_of or self.clock.today()
        try:
            return await self._resolve(approver_id, employee_id, as_of)
        except ServiceUnavailableError as exc:
            logger.warning(
                "Entitlement lookup failed, denying",
                extra={"approver_id": approver_id, "employee_id": employee_id, "error": exc.message},
            )
            return EntitlementResult.denied(lookup_failed=True)

    async def _resolve(self, approver_id: int, employee_id: int, as_of: date) -> EntitlementResult:
        approver = await self.users.get_user(approver_id)
        if approver is None or not approver.is_active:
            return EntitlementResult.denied()

        if is_administrator(approver.role):
            return EntitlementResult(authorized=True, basis=ApprovalBasis.ADMIN)

        manager_id = await self.org.get_direct_manager(employee_id)
        if manager_id is None:
            return EntitlementResult.denied()
        if manager_id == approver_id:
            return EntitlementResult(authorized=True, basis=ApprovalBasis.DIRECT_MANAGER)

        for delegation in await self.delegations.active_delegations_for(approver_id, as_of):
            if delegation.delegator_id == manager_id:
                return EntitlementResult(
                    authorized=True,
                    basis=ApprovalBasis.DELEGATION,
                    delegation_id=delegation.id,
                    on_behalf_of_user_id=manager_id,
                )

        return EntitlementResult.denied()
