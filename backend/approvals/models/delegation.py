"""
Approval delegation model.
"""

from sqlalchemy import Column, String, Date, DateTime, Boolean, Integer, ForeignKey, CheckConstraint

from approvals.db.base import Base


class ApprovalDelegation(Base):
    """Time-bounded grant of a delegator's approval authority to a delegate."""

    __tablename__ = "approval_delegations"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="range"),
        CheckConstraint("delegator_id <> delegate_id", name="not_self"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    delegator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    delegate_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoked_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
