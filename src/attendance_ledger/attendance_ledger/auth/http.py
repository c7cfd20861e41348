"""Bearer-token guards for Flask views.

The container is looked up from `current_app.extensions`, so the decorators can be
applied at import time in any controller module.
"""
from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import current_app, g, request

from ..core.exceptions import AuthenticationError, AuthorizationError
from .tokens import Identity

EXTENSION_KEY = "attendance_ledger"


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def current_identity() -> Identity:
    return g.identity


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise AuthenticationError("Access token required")
        container = current_app.extensions[EXTENSION_KEY]
        identity = container.tokens.verify_identity(token)
        if identity is None:
            raise AuthorizationError("Invalid or expired token")
        g.identity = identity
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @login_required
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not g.identity.is_admin:
            raise AuthorizationError("Admin access required")
        return view(*args, **kwargs)

    return wrapper
