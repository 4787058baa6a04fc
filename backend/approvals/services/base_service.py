"""
Base service class.
Services contain business logic and coordinate repositories.
"""

import logging
from abc import ABC
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from approvals.core.exceptions import AuditWriteError, PartialFailureError
from approvals.core.interfaces import ApprovalRepository
from approvals.schemas.audit import AuditEntry
from approvals.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class BaseService(ABC):
    """Base service class for state-changing services."""

    repository: ApprovalRepository
    audit: AuditService

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[None]:
        """
        Run a check-then-write sequence plus its audit append as one unit.

        Commits on success and rolls back on any error. An audit failure whose
        primary write cannot be rolled back surfaces as PartialFailureError.
        """
        try:
            yield
        except AuditWriteError as exc:
            if await self.repository.rollback():
                raise
            logger.critical(
                "State change committed without audit record",
                extra={"entity_id": getattr(exc.entity, "id", None), "action": getattr(exc.audit_entry, "action", None)},
            )
            raise PartialFailureError(
                "State change was applied but its audit record could not be written",
                entity=exc.entity,
                audit_entry=exc.audit_entry,
            ) from exc
        except Exception:
            await self.repository.rollback()
            raise

        try:
            await self.repository.commit()
        except Exception:
            await self.repository.rollback()
            raise

    async def _record(self, entry: AuditEntry, entity: Any = None) -> None:
        """Append the audit entry for a change made inside the current unit of work."""
        await self.audit.record(entry, entity)
