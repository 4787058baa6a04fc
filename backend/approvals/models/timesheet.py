"""
Timesheet models for weekly time entry and approval workflows.
"""

from sqlalchemy import Column, String, Date, ForeignKey, Numeric, Integer, Boolean, DateTime, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from approvals.db.base import Base


class TimesheetStatus(str, enum.Enum):
    """Timesheet status enumeration."""
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    RETURNED = "Returned"


class Timesheet(Base):
    """Timesheet model - one per user per week."""

    __tablename__ = "timesheets"
    __table_args__ = (
        UniqueConstraint("user_id", "period_start", name="uq_timesheet_user_period"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    period_start = Column(Date, nullable=False, index=True)
    period_end = Column(Date, nullable=False)
    status = Column(
        SQLEnum(TimesheetStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=TimesheetStatus.DRAFT,
        index=True,
    )
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    return_reason = Column(String(2000), nullable=True)
    is_locked = Column(Boolean, nullable=False, default=False)

    # Relationships
    entries = relationship("TimeEntry", back_populates="timesheet", cascade="all, delete-orphan", order_by="TimeEntry.work_date")


class TimeEntry(Base):
    """Hours worked by one user on one day."""

    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timesheet_id = Column(Integer, ForeignKey("timesheets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    work_date = Column(Date, nullable=False)
    hours_worked = Column(Numeric(5, 2), nullable=False, default=0)
    notes = Column(String(2000), nullable=True)

    # Relationships
    timesheet = relationship("Timesheet", back_populates="entries")
