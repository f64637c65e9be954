"""
Domain Models for Drop Commerce

Pure Python/Pydantic models shared across bounded contexts.
"""

from decimal import Decimal
from enum import Enum
import uuid

from pydantic import BaseModel


CENT = Decimal("0.01")


class UserRole(str, Enum):
    """Roles an acting principal can hold."""
    USER = "user"
    ADMIN = "admin"
    SYSTEM = "system"


class Actor(BaseModel):
    """The principal performing an operation."""
    user_id: uuid.UUID
    role: UserRole = UserRole.USER

    @property
    def is_privileged(self) -> bool:
        """Admins and the scheduler may act on any record."""
        return self.role in (UserRole.ADMIN, UserRole.SYSTEM)

    def can_act_on(self, owner_id: uuid.UUID) -> bool:
        return self.is_privileged or self.user_id == owner_id

