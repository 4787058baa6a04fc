"""
Delegation repository for database operations.
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from approvals.core.exceptions import StateError
from approvals.db.repositories.base_repository import BaseRepository, translate_db_errors
from approvals.models.delegation import ApprovalDelegation
from approvals.models.user import User
from approvals.schemas.delegation import DelegationFilter


class DelegationRepository(BaseRepository[ApprovalDelegation]):
    """Repository for approval delegation operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ApprovalDelegation, session)

    @translate_db_errors
    async def lock_delegator(self, delegator_id: int) -> None:
        """Row-lock the delegator so concurrent grants for them run one at a time."""
        await self.session.execute(
            select(User.id).where(User.id == delegator_id).with_for_update()
        )

    @translate_db_errors
    async def query(self, filter: DelegationFilter, for_update: bool = False) -> List[ApprovalDelegation]:
        """List delegations matching the filter."""
        query = select(ApprovalDelegation).execution_options(populate_existing=True)

        if filter.delegator_id is not None:
            query = query.where(ApprovalDelegation.delegator_id == filter.delegator_id)
        if filter.delegate_id is not None:
            query = query.where(ApprovalDelegation.delegate_id == filter.delegate_id)
        if filter.active_only:
            query = query.where(ApprovalDelegation.is_active.is_(True))
        if filter.as_of is not None:
            query = query.where(
                ApprovalDelegation.start_date <= filter.as_of,
                ApprovalDelegation.end_date >= filter.as_of,
            )

        if filter.order == "start_ascending":
            query = query.order_by(ApprovalDelegation.start_date.asc(), ApprovalDelegation.id.asc())
        else:
            query = query.order_by(ApprovalDelegation.created_at.desc(), ApprovalDelegation.id.desc())

        if for_update:
            query = query.with_for_update()

        result = await self.session.execute(query)
        return list(result.scalars().all())

    @translate_db_errors
    async def update_if_active(self, id: int, expected_active: bool, **values) -> ApprovalDelegation:
        """Update the row only while ``is_active`` still has the expected value."""
        result = await self.session.execute(
            update(ApprovalDelegation)
            .where(
                ApprovalDelegation.id == id,
                ApprovalDelegation.is_active.is_(expected_active),
            )
            .values(**values)
        )
        if result.rowcount == 0:
            raise StateError(
                "Delegation was modified concurrently",
                details={"delegation_id": id},
            )
        await self.session.flush()
        return await self.get(id)
