"""
Append-only audit log for delegation and timesheet approval actions.
"""

from sqlalchemy import Column, String, Date, DateTime, Integer, ForeignKey

from approvals.db.base import Base


class ApprovalAuditLog(Base):
    """
    One row per audited action.

    Columns that do not apply to an action kind stay NULL; the typed view of a row
    is the matching variant in ``approvals.schemas.audit``.
    """

    __tablename__ = "approval_audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(20), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False)

    # Timesheet actions
    timesheet_id = Column(Integer, ForeignKey("timesheets.id"), nullable=True, index=True)
    previous_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=True)
    notes = Column(String(2000), nullable=True)
    basis = Column(String(20), nullable=True)
    on_behalf_of_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Delegation actions (delegation_id is also set on delegated approvals)
    delegation_id = Column(Integer, ForeignKey("approval_delegations.id"), nullable=True, index=True)
    delegator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    delegate_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    reason = Column(String(500), nullable=True)
