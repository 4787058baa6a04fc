"""
User directory schemas.
"""

from pydantic import BaseModel
from typing import Optional

from approvals.models.user import UserRole


class UserRecord(BaseModel):
    """A user as returned by the user directory."""
    id: int
    name: str
    email: str
    is_active: bool = True
    role: UserRole = UserRole.EMPLOYEE
    manager_id: Optional[int] = None
    entra_object_id: Optional[str] = None

    class Config:
        from_attributes = True
