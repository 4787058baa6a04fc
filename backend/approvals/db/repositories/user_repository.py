"""
User repository and the database-backed user directory and org chart.
"""

from typing import Iterable, Optional, List
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import select

from approvals.core.interfaces import OrgRelationship, UserDirectory
from approvals.db.repositories.base_repository import BaseRepository, translate_db_errors
from approvals.models.user import User, UserRole
from approvals.schemas.user import UserRecord


class UserRepository(BaseRepository[User]):
    """Repository for user operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    @translate_db_errors
    async def get_by_entra_object_id(self, entra_object_id: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.entra_object_id == entra_object_id)
        )
        return result.scalar_one_or_none()

    @translate_db_errors
    async def list_by_roles(
        self,
        roles: Optional[Iterable[UserRole]] = None,
        active_only: bool = True,
    ) -> List[User]:
        """List users ordered by name."""
        query = select(User)
        if roles is not None:
            query = query.where(User.role.in_(list(roles)))
        if active_only:
            query = query.where(User.is_active.is_(True))
        query = query.order_by(User.name, User.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())


class SqlUserDirectory(UserDirectory):
    """User directory reading the local users table."""

    def __init__(self, session: AsyncSession):
        self.user_repo = UserRepository(session)

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        user = await self.user_repo.get(user_id)
        return UserRecord.model_validate(user) if user else None

    async def list_users(
        self,
        roles: Optional[Iterable[UserRole]] = None,
        active_only: bool = True,
    ) -> List[UserRecord]:
        users = await self.user_repo.list_by_roles(roles, active_only)
        return [UserRecord.model_validate(u) for u in users]


class SqlOrgRelationship(OrgRelationship):
    """
    Org chart read from ``users.manager_id``.

    Opens its own short session per lookup so one instance can sit behind a
    process-wide cache.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @translate_db_errors
    async def get_direct_manager(self, user_id: int) -> Optional[int]:
        async with self.session_factory() as session:
            result = await session.execute(select(User.manager_id).where(User.id == user_id))
            return result.scalar_one_or_none()
