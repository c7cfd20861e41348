from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from flask import request

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_datetime


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def query_datetime(name: str, *, end_of_day: bool = False) -> Optional[datetime]:
    """Read an ISO date/datetime query arg; a bare date used as an upper bound covers the whole day."""

    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date or datetime")
    if end_of_day and len(raw) == 10:
        value = value + timedelta(days=1) - timedelta(microseconds=1)
    return value


def query_int(name: str) -> Optional[int]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def page_view(page, item_view) -> dict:
    return {
        "items": [item_view(item) for item in page.items],
        "pagination": {
            "page": page.page,
            "limit": page.limit,
            "total": page.total,
            "totalPages": page.total_pages,
        },
    }
