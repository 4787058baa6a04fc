"""
Audit log repository: the database audit sink and reader.
"""

import enum
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from approvals.core.interfaces import AuditReader, AuditSink
from approvals.db.repositories.base_repository import BaseRepository, translate_db_errors
from approvals.models.audit import ApprovalAuditLog
from approvals.schemas.audit import AuditEntry, audit_entry_adapter


def _to_columns(entry: AuditEntry) -> dict:
    values = entry.model_dump()
    return {
        key: value.value if isinstance(value, enum.Enum) else value
        for key, value in values.items()
    }


def _to_entry(row: ApprovalAuditLog) -> AuditEntry:
    values = {
        column.name: getattr(row, column.name)
        for column in ApprovalAuditLog.__table__.columns
        if column.name != "id" and getattr(row, column.name) is not None
    }
    return audit_entry_adapter.validate_python(values)


class SqlAuditSink(BaseRepository[ApprovalAuditLog], AuditSink, AuditReader):
    """
    Writes audit rows into the caller's session.

    Rows become durable with the same commit as the state change they describe.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(ApprovalAuditLog, session)

    async def append(self, entry: AuditEntry) -> None:
        await self.create(**_to_columns(entry))

    @translate_db_errors
    async def entries_for_timesheet(self, timesheet_id: int) -> List[AuditEntry]:
        result = await self.session.execute(
            select(ApprovalAuditLog)
            .where(ApprovalAuditLog.timesheet_id == timesheet_id)
            .order_by(ApprovalAuditLog.occurred_at, ApprovalAuditLog.id)
        )
        return [_to_entry(row) for row in result.scalars().all()]

    @translate_db_errors
    async def entries_for_delegation(self, delegation_id: int) -> List[AuditEntry]:
        """Grant and revocation entries plus approvals made under the delegation."""
        result = await self.session.execute(
            select(ApprovalAuditLog)
            .where(ApprovalAuditLog.delegation_id == delegation_id)
            .order_by(ApprovalAuditLog.occurred_at, ApprovalAuditLog.id)
        )
        return [_to_entry(row) for row in result.scalars().all()]
