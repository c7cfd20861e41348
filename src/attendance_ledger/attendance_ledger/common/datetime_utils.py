from __future__ import annotations

from datetime import date, datetime, time


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO timestamp or a bare date (start of day)."""
    v = value.strip()
    if len(v) == 10:
        return datetime.combine(parse_iso_date(v), time.min)
    parsed = datetime.fromisoformat(v.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        # Ledger timestamps are naive local time.
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600
