"""Working-hours math over reconciled sessions. Pure functions, no state."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..attendance.model import AttendanceEvent, Session
from ..core.enums import EventType


@dataclass(frozen=True)
class WorkingHours:
    total_hours: float
    average_hours_per_session: float
    session_count: int


@dataclass(frozen=True)
class EventTally:
    """Raw counts for display; open sessions count here even though they have no duration."""

    total_records: int
    check_ins: int
    check_outs: int
    unique_users: int


def aggregate(sessions: Iterable[Session]) -> WorkingHours:
    total = 0.0
    count = 0
    for session in sessions:
        hours = session.duration_hours()
        if hours is None:
            continue
        total += hours
        count += 1

    average = total / count if count else 0.0
    return WorkingHours(total_hours=total, average_hours_per_session=average, session_count=count)


def tally(events: Iterable[AttendanceEvent]) -> EventTally:
    total = check_ins = check_outs = 0
    users: set[int] = set()
    for event in events:
        total += 1
        users.add(event.user_id)
        if event.type == EventType.IN:
            check_ins += 1
        else:
            check_outs += 1
    return EventTally(total_records=total, check_ins=check_ins, check_outs=check_outs, unique_users=len(users))


def format_hours(hours: float) -> str:
    """8.5 -> '08:30'."""

    minutes = int(round(hours * 60))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
