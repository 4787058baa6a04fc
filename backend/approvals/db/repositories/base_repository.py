"""
Base repository class with common CRUD operations.
Repositories handle database access using async SQLAlchemy sessions.
"""

import functools
import logging
from typing import Generic, TypeVar, Type, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import InterfaceError, OperationalError

from approvals.core.exceptions import ServiceUnavailableError
from approvals.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


def translate_db_errors(func):
    """Report lost connections and similar driver failures as ServiceUnavailableError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.error(
                "Database unavailable",
                extra={"operation": func.__qualname__, "error": str(exc)},
            )
            raise ServiceUnavailableError("Database unavailable", details={"operation": func.__name__}) from exc

    return wrapper


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    @translate_db_errors
    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model attributes

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    @translate_db_errors
    async def get(self, id: int, for_update: bool = False) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record ID
            for_update: Lock the row until the transaction ends

        Returns:
            Model instance or None
        """
        query = select(self.model).where(self.model.id == id).execution_options(populate_existing=True)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
