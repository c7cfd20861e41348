"""Signed tokens: 24h identity tokens for API auth, short-lived QR capability tokens.

Both are HS256 JWTs signed with the shared `JWT_SECRET`. Verification folds every
failure (bad signature, malformed payload, expiry) into a single `None` result so
callers cannot tell a forged token from an expired one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import jwt

from ..common.datetime_utils import now_local
from ..core.constants import (
    ATTENDANCE_PURPOSE,
    DEFAULT_QR_EXPIRY_MINUTES,
    IDENTITY_TOKEN_HOURS,
    MAX_QR_EXPIRY_MINUTES,
)
from ..core.enums import Role
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
IDENTITY_TYPE = "identity"
QR_TYPE = "qr-attendance"


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class IssuedToken:
    value: str
    purpose: str
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in_minutes(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds() // 60)


def _timestamp(moment: datetime) -> int:
    if moment.tzinfo is None:
        return int(moment.timestamp())
    return int(moment.astimezone(timezone.utc).timestamp())


class TokenService:
    def __init__(self, secret: str, *, clock: Callable[[], datetime] = now_local):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._clock = clock

    def _sign(self, claims: dict) -> str:
        return jwt.encode(claims, self._secret, algorithm=JWT_ALGORITHM)

    def issue_identity_token(self, user_id: int, email: str, role: Role) -> str:
        now = self._clock()
        return self._sign(
            {
                "user_id": int(user_id),
                "email": email,
                "role": Role(role).value,
                "typ": IDENTITY_TYPE,
                "iat": _timestamp(now),
                "exp": _timestamp(now + timedelta(hours=IDENTITY_TOKEN_HOURS)),
            }
        )

    def issue_attendance_token(
        self,
        purpose: str = ATTENDANCE_PURPOSE,
        expires_in_minutes: int = DEFAULT_QR_EXPIRY_MINUTES,
    ) -> IssuedToken:
        if purpose != ATTENDANCE_PURPOSE:
            # Scans only redeem attendance tokens.
            raise ValidationError(f"purpose must be '{ATTENDANCE_PURPOSE}'")
        try:
            minutes = int(expires_in_minutes)
        except (TypeError, ValueError):
            raise ValidationError("expiryMinutes must be an integer")
        if minutes < 1 or minutes > MAX_QR_EXPIRY_MINUTES:
            raise ValidationError(f"expiryMinutes must be between 1 and {MAX_QR_EXPIRY_MINUTES}")

        issued_at = self._clock()
        expires_at = issued_at + timedelta(minutes=minutes)
        value = self._sign(
            {
                "purpose": purpose,
                "typ": QR_TYPE,
                "iat": _timestamp(issued_at),
                "exp": _timestamp(expires_at),
            }
        )
        return IssuedToken(value=value, purpose=purpose, issued_at=issued_at, expires_at=expires_at)

    def verify(self, token: Optional[str]) -> Optional[dict[str, Any]]:
        if not token:
            return None
        try:
            # Expiry is checked below against the injected clock, not the wall clock.
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug("token rejected: %s", type(e).__name__)
            return None

        try:
            expires_at = int(claims["exp"])
        except (TypeError, ValueError):
            logger.debug("token rejected: non-numeric exp")
            return None
        if _timestamp(self._clock()) >= expires_at:
            logger.debug("token rejected: expired")
            return None
        return claims

    def verify_identity(self, token: Optional[str]) -> Optional[Identity]:
        claims = self.verify(token)
        if not claims or claims.get("typ") != IDENTITY_TYPE:
            return None
        try:
            return Identity(user_id=int(claims["user_id"]), email=str(claims["email"]), role=Role(claims["role"]))
        except (KeyError, TypeError, ValueError):
            return None

    def verify_attendance(self, token: Optional[str], purpose: str = ATTENDANCE_PURPOSE) -> Optional[dict[str, Any]]:
        claims = self.verify(token)
        if not claims or claims.get("typ") != QR_TYPE or claims.get("purpose") != purpose:
            return None
        return claims
