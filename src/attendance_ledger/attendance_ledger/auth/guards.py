from __future__ import annotations

from ..core.exceptions import AuthorizationError
from .tokens import Identity


def require_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise AuthorizationError("Admin access required")


def require_owner_or_admin(identity: Identity, owner_id: int, message: str = "Not allowed") -> None:
    if identity.is_admin:
        return
    if int(identity.user_id) != int(owner_id):
        raise AuthorizationError(message)
