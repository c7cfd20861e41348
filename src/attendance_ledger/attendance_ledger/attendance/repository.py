from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CheckInMethod, EventType
from .model import AttendanceEvent, AttendanceLogRow


class AttendanceRepository(Protocol):
    """Append-only attendance ledger.

    Implementations raise StorageConflict from append_event when a second IN would
    open another session for the same user on the same day. `closed_sessions` names
    the day's sessions the caller saw as closed; their guard rows may be replaced.
    """

    def append_event(
        self,
        *,
        user_id: int,
        type: EventType,
        method: CheckInMethod,
        token: str,
        session_id: str,
        created_at: datetime,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        closed_sessions: Sequence[str] = (),
    ) -> int:
        raise NotImplementedError

    def query_events(
        self,
        user_id: int,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Sequence[AttendanceEvent]:
        """Events of one user ordered by created_at ascending."""

        raise NotImplementedError

    def list_log_rows(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[AttendanceLogRow]:
        """Events joined with their owner, newest first."""

        raise NotImplementedError

    def count_events(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int:
        raise NotImplementedError
