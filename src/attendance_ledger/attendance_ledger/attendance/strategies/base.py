from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional, Sequence

from ...core.enums import EventType
from ..model import Admission, AttendanceEvent


class AdmissionStrategy(ABC):
    """Strategy Pattern: encapsulate how one event type is admitted and linked to a session.

    `history` is always sorted by created_at (oldest first) before it reaches a strategy.
    """

    @abstractmethod
    def admit(
        self,
        *,
        history: Sequence[AttendanceEvent],
        at: datetime,
        new_session_id: Callable[[], str],
    ) -> Admission:
        raise NotImplementedError


def latest_of_type(
    history: Sequence[AttendanceEvent],
    event_type: EventType,
    *,
    since: Optional[datetime] = None,
) -> Optional[AttendanceEvent]:
    for event in reversed(history):
        if event.type != event_type:
            continue
        if since is not None and event.created_at < since:
            return None
        return event
    return None


def has_out_after(history: Sequence[AttendanceEvent], check_in: AttendanceEvent) -> bool:
    return any(e.type == EventType.OUT and e.created_at > check_in.created_at for e in history)
