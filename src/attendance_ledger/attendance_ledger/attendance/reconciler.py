"""Session reconciliation over a user's attendance ledger.

Everything here is pure: callers read the history, ask for an admission, and
persist the event themselves. Policy refusals come back as values
(`Admission.violation`), never as exceptions.
"""
from __future__ import annotations

import secrets
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from ..core.enums import EventType
from .factory import AdmissionStrategyFactory
from .model import Admission, AttendanceEvent, Session


def generate_session_id() -> str:
    return secrets.token_hex(8)


def sort_events(events: Iterable[AttendanceEvent]) -> list[AttendanceEvent]:
    # Storage does not guarantee arrival order; sorted() is stable for equal timestamps.
    return sorted(events, key=lambda e: e.created_at)


class SessionReconciler:
    def __init__(
        self,
        *,
        strategy_factory: Optional[AdmissionStrategyFactory] = None,
        session_id_factory: Callable[[], str] = generate_session_id,
    ):
        self._factory = strategy_factory or AdmissionStrategyFactory()
        self._new_session_id = session_id_factory

    def admit_event(
        self,
        history: Sequence[AttendanceEvent],
        candidate_type: EventType,
        at: datetime,
    ) -> Admission:
        strategy = self._factory.for_event(EventType(candidate_type))
        return strategy.admit(history=sort_events(history), at=at, new_session_id=self._new_session_id)

    @staticmethod
    def pair_sessions(events: Iterable[AttendanceEvent]) -> list[Session]:
        """Group events into sessions by session id.

        When a session holds several events of one type the latest wins.
        Sessions are ordered by their earliest event.
        """

        grouped: dict[str, dict[EventType, AttendanceEvent]] = {}
        for event in sort_events(events):
            if not event.session_id:
                continue
            grouped.setdefault(event.session_id, {})[event.type] = event

        sessions = [
            Session(session_id=sid, check_in=pair.get(EventType.IN), check_out=pair.get(EventType.OUT))
            for sid, pair in grouped.items()
        ]
        sessions.sort(key=lambda s: s.started_at)
        return sessions

    def open_session(self, history: Sequence[AttendanceEvent]) -> Optional[Session]:
        """The session an OUT recorded now would close, if any."""

        ordered = sort_events(history)
        for session in reversed(self.pair_sessions(ordered)):
            if session.check_in is None:
                continue
            if session.is_open and not any(
                e.type == EventType.OUT and e.created_at > session.check_in.created_at for e in ordered
            ):
                return session
            return None
        return None
