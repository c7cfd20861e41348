from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import hours_between
from ..core.enums import CheckInMethod, EventType, PolicyViolation


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one row of the append-only attendance ledger."""

    event_id: int
    user_id: int
    type: EventType
    method: CheckInMethod
    token: str
    session_id: str
    created_at: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def location(self) -> Optional[tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class AttendanceLogRow:
    """Read-model for logs/reports: an event joined with its owner (optimized for queries)."""

    event: AttendanceEvent
    name: str
    email: str
    department: Optional[str]
    position: Optional[str]


@dataclass(frozen=True)
class Session:
    """An IN/OUT pair sharing a session id. Derived, never stored."""

    session_id: str
    check_in: Optional[AttendanceEvent]
    check_out: Optional[AttendanceEvent]

    @property
    def is_open(self) -> bool:
        return self.check_in is not None and self.check_out is None

    @property
    def is_closed(self) -> bool:
        return self.check_in is not None and self.check_out is not None

    @property
    def user_id(self) -> int:
        first = self.check_in or self.check_out
        return first.user_id

    @property
    def started_at(self) -> datetime:
        first = self.check_in or self.check_out
        return first.created_at

    def duration_hours(self) -> Optional[float]:
        if not self.is_closed:
            return None
        return hours_between(self.check_in.created_at, self.check_out.created_at)


@dataclass(frozen=True)
class Admission:
    """Outcome of asking the reconciler whether an event may be recorded."""

    session_id: Optional[str]
    violation: Optional[PolicyViolation] = None

    @property
    def admitted(self) -> bool:
        return self.violation is None

    @classmethod
    def accept(cls, session_id: str) -> "Admission":
        return cls(session_id=session_id)

    @classmethod
    def reject(cls, violation: PolicyViolation) -> "Admission":
        return cls(session_id=None, violation=violation)


@dataclass(frozen=True)
class AttendanceStatusView:
    """What the employee dashboard shows for today."""

    open_session: Optional[Session]
    sessions_today: list[Session]
    hours_today: float

    @property
    def next_action(self) -> EventType:
        return EventType.OUT if self.open_session else EventType.IN
