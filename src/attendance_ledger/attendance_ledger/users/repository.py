from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role, UserStatus
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        role: Role,
        status: UserStatus,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> int:
        """Raises ConflictError when the email is taken."""

        raise NotImplementedError

    def update_user(self, user_id: int, **fields) -> bool:
        """Partial update; keys are User field names."""

        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_users(
        self,
        *,
        status: Optional[UserStatus] = None,
        role: Optional[Role] = None,
        department: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[User]:
        raise NotImplementedError

    def count_users(
        self,
        *,
        status: Optional[UserStatus] = None,
        role: Optional[Role] = None,
        department: Optional[str] = None,
    ) -> int:
        raise NotImplementedError
