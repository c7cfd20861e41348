from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: plain data object (no DB access code here).
    """

    user_id: int
    email: str
    name: str
    password_hash: str
    role: Role
    status: UserStatus
    department: Optional[str] = None
    position: Optional[str] = None
    device_token: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def public_view(self) -> dict:
        """Fields safe to return to clients (never the password hash)."""

        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "status": self.status.value,
            "department": self.department,
            "position": self.position,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
