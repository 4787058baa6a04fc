"""
Delegation service: time-bounded grants of one user's approval authority to another.
"""

import logging
from datetime import date
from typing import List, Optional, Union

import pydantic

from approvals.core.clock import Clock, SystemClock
from approvals.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from approvals.core.interfaces import ApprovalRepository, UserDirectory
from approvals.core.roles import APPROVAL_CAPABLE_ROLES, is_administrator, is_approval_capable
from approvals.models.user import UserRole
from approvals.schemas.audit import AuditEntry, DelegationCreated, DelegationRevoked
from approvals.schemas.delegation import (
    DelegationConflict,
    DelegationCreate,
    DelegationFilter,
    DelegationResponse,
    DelegationRevocation,
)
from approvals.schemas.user import UserRecord
from approvals.services.audit_service import AuditService
from approvals.services.base_service import BaseService
from approvals.utils.date_interval import DateInterval, contains_today, overlaps

logger = logging.getLogger(__name__)


class DelegationService(BaseService):
    """Service for delegation grants, revocations and lookups."""

    def __init__(
        self,
        repository: ApprovalRepository,
        users: UserDirectory,
        audit: AuditService,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.users = users
        self.audit = audit
        self.clock = clock or SystemClock()

    async def create_delegation(
        self,
        delegator_id: int,
        delegate_id: int,
        start_date: date,
        end_date: date,
        reason: Optional[str],
        created_by_id: int,
    ) -> DelegationResponse:
        """
        Grant ``delegator_id``'s approval authority to ``delegate_id`` for
        [start_date, end_date].

        Raises:
            ValidationError: self-delegation, inverted range, over-long reason,
                inactive user or ineligible delegate
            ConflictError: the delegator already has an active delegation
                overlapping the window; details name the conflicting one
        """
        if delegator_id == delegate_id:
            raise ValidationError("self-delegation", details={"user_id": delegator_id})
        interval = DateInterval(start_date, end_date)
        try:
            record = DelegationCreate(
                delegator_id=delegator_id,
                delegate_id=delegate_id,
                start_date=interval.start,
                end_date=interval.end,
                reason=reason,
                created_by_id=created_by_id,
                created_at=self.clock.now(),
            )
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "Invalid delegation",
                details=[{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in exc.errors()],
            ) from exc

        delegator = await self.users.get_user(delegator_id)
        delegate = await self.users.get_user(delegate_id)
        inactive = [
            user_id
            for user_id, user in ((delegator_id, delegator), (delegate_id, delegate))
            if user is None or not user.is_active
        ]
        if inactive:
            raise ValidationError("inactive user", details={"user_ids": inactive})
        if not is_approval_capable(delegate.role):
            raise ValidationError(
                "ineligible delegate",
                details={"delegate_id": delegate_id, "role": delegate.role.value},
            )

        async with self._unit_of_work():
            existing = await self.repository.query_delegations(
                DelegationFilter(delegator_id=delegator_id, active_only=True, order="start_ascending"),
                for_update=True,
            )
            for other in existing:
                if overlaps(other.interval, interval):
                    raise ConflictError(
                        "Delegation overlaps an existing active delegation",
                        details=DelegationConflict(
                            delegation_id=other.id,
                            delegate_id=other.delegate_id,
                            start_date=other.start_date,
                            end_date=other.end_date,
                        ),
                    )

            delegation = await self.repository.insert_delegation(record)
            await self._record(
                DelegationCreated(
                    actor_id=created_by_id,
                    occurred_at=delegation.created_at,
                    delegation_id=delegation.id,
                    delegator_id=delegation.delegator_id,
                    delegate_id=delegation.delegate_id,
                    start_date=delegation.start_date,
                    end_date=delegation.end_date,
                    reason=delegation.reason,
                ),
                entity=delegation,
            )

        logger.info(
            "Delegation created",
            extra={
                "delegation_id": delegation.id,
                "delegator_id": delegator_id,
                "delegate_id": delegate_id,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
        )
        return delegation

    async def revoke_delegation(
        self,
        delegation_id: int,
        acting_user_id: int,
        acting_user_role: Union[UserRole, str],
    ) -> DelegationResponse:
        """Deactivate a delegation. Only its delegator or an administrator may do so."""
        async with self._unit_of_work():
            delegation = await self.repository.get_delegation(delegation_id)
            if not delegation:
                raise NotFoundError("Delegation not found", details={"delegation_id": delegation_id})
            if not delegation.is_active:
                raise StateError("Delegation is already revoked", details={"delegation_id": delegation_id})
            if acting_user_id != delegation.delegator_id and not is_administrator(acting_user_role):
                raise AuthorizationError(
                    "Only the delegator or an administrator can revoke this delegation",
                    details={"delegation_id": delegation_id, "user_id": acting_user_id},
                )

            revoked = await self.repository.update_delegation(
                delegation_id,
                DelegationRevocation(revoked_at=self.clock.now(), revoked_by_id=acting_user_id),
                expected_active=True,
            )
            await self._record(
                DelegationRevoked(
                    actor_id=acting_user_id,
                    occurred_at=revoked.revoked_at,
                    delegation_id=revoked.id,
                    delegator_id=revoked.delegator_id,
                    delegate_id=revoked.delegate_id,
                    start_date=revoked.start_date,
                    end_date=revoked.end_date,
                ),
                entity=revoked,
            )

        logger.info(
            "Delegation revoked",
            extra={"delegation_id": delegation_id, "revoked_by_id": acting_user_id},
        )
        return revoked

    async def get_delegation(
        self,
        delegation_id: int,
        viewer_id: int,
        viewer_role: Union[UserRole, str],
    ) -> DelegationResponse:
        """Get a delegation visible to its delegator, its delegate or an administrator."""
        delegation = await self.repository.get_delegation(delegation_id)
        if not delegation:
            raise NotFoundError("Delegation not found", details={"delegation_id": delegation_id})
        if viewer_id not in (delegation.delegator_id, delegation.delegate_id) and not is_administrator(viewer_role):
            raise AuthorizationError(
                "Not authorized to view this delegation",
                details={"delegation_id": delegation_id, "user_id": viewer_id},
            )
        return delegation

    async def delegations_given_by(self, user_id: int) -> List[DelegationResponse]:
        """All delegations granted by the user, newest first."""
        return await self.repository.query_delegations(DelegationFilter(delegator_id=user_id))

    async def delegations_received_by(self, user_id: int) -> List[DelegationResponse]:
        """All delegations granted to the user, newest first."""
        return await self.repository.query_delegations(DelegationFilter(delegate_id=user_id))

    async def active_delegations_for(
        self,
        delegate_user_id: int,
        as_of: Optional[date] = None,
    ) -> List[DelegationResponse]:
        """
        Delegations currently in force for ``delegate_user_id``, earliest start first.

        A delegation past its end date stays active in storage but is excluded here.
        """
        as_of = as_of or self.clock.today()
        delegations = await self.repository.query_delegations(
            DelegationFilter(
                delegate_id=delegate_user_id,
                active_only=True,
                as_of=as_of,
                order="start_ascending",
            )
        )
        return [d for d in delegations if d.is_active and contains_today(d.interval, as_of)]

    async def can_approve_on_behalf_of(
        self,
        delegate_id: int,
        delegator_id: int,
        as_of: Optional[date] = None,
    ) -> bool:
        delegations = await self.active_delegations_for(delegate_id, as_of)
        return any(d.delegator_id == delegator_id for d in delegations)

    async def eligible_delegates(self, excluding_user_id: int) -> List[UserRecord]:
        """Active approval-capable users other than ``excluding_user_id``, by name."""
        users = await self.users.list_users(roles=APPROVAL_CAPABLE_ROLES, active_only=True)
        return [u for u in users if u.id != excluding_user_id and u.is_active and is_approval_capable(u.role)]

    async def delegation_history(self, delegation_id: int) -> List[AuditEntry]:
        return await self.audit.history_for_delegation(delegation_id)
