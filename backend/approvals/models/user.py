"""
User model as seen by the approvals core.
Role and manager fields mirror the directory service.
"""

from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from approvals.db.base import Base


class UserRole(str, enum.Enum):
    """User role enumeration."""
    EMPLOYEE = "Employee"
    MANAGER = "Manager"
    TIMESHEET_ADMIN = "TimesheetAdmin"
    LEADERSHIP = "Leadership"


class User(Base):
    """Application user with role and direct-manager link."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.EMPLOYEE,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    entra_object_id = Column(String(64), unique=True, nullable=True, index=True)

    # Relationships
    manager = relationship("User", remote_side=[id], foreign_keys=[manager_id])
