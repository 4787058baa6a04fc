"""
Audit trail writer and reader.
"""

import logging
from typing import Any, List, Optional

from approvals.core.exceptions import AuditWriteError
from approvals.core.interfaces import AuditReader, AuditSink
from approvals.schemas.audit import AuditEntry

logger = logging.getLogger(__name__)


class AuditService:
    """Appends immutable audit entries and reads them back."""

    def __init__(self, sink: AuditSink, reader: Optional[AuditReader] = None):
        self.sink = sink
        self.reader = reader

    async def record(self, entry: AuditEntry, entity: Any = None) -> None:
        """
        Append ``entry``. Any sink failure is raised as AuditWriteError
        carrying the entity whose change the entry describes.
        """
        try:
            await self.sink.append(entry)
        except Exception as exc:
            logger.error(
                "Audit write failed",
                extra={
                    "action": entry.action,
                    "actor_id": entry.actor_id,
                    "entity_id": getattr(entity, "id", None),
                    "error": str(exc),
                },
            )
            raise AuditWriteError(
                f"Audit write failed for {entry.action}",
                entity=entity,
                audit_entry=entry,
            ) from exc

    async def history_for_timesheet(self, timesheet_id: int) -> List[AuditEntry]:
        if self.reader is None:
            return []
        return await self.reader.entries_for_timesheet(timesheet_id)

    async def history_for_delegation(self, delegation_id: int) -> List[AuditEntry]:
        if self.reader is None:
            return []
        return await self.reader.entries_for_delegation(delegation_id)
