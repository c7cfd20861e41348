from __future__ import annotations

import re
from typing import Optional

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters long")
    return value


def require_email(value: Optional[str]) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    return email


def optional_text(value: Optional[str]) -> Optional[str]:
    v = str(value or "").strip()
    return v or None


def parse_enum(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def normalize_paging(page, limit) -> tuple[int, int]:
    try:
        page_i = int(page or 1)
        limit_i = int(limit or DEFAULT_PAGE_SIZE)
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    if page_i < 1:
        page_i = 1
    if limit_i < 1:
        limit_i = DEFAULT_PAGE_SIZE
    return page_i, min(limit_i, MAX_PAGE_SIZE)
