from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import CheckInMethod, EventType
from ..core.exceptions import StorageConflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, unique_violation_as, where_clause
from .model import AttendanceEvent, AttendanceLogRow
from .repository import AttendanceRepository

_EVENT_COLUMNS = """
    e.event_id, e.user_id, e.type, e.method, e.token, e.session_id,
    e.created_at, e.latitude, e.longitude
"""


def _to_event(r: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        user_id=int(r["user_id"]),
        type=EventType(r["type"]),
        method=CheckInMethod(r["method"]),
        token=r["token"],
        session_id=r["session_id"],
        created_at=r["created_at"],
        latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
        longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """Ledger on `attendance_events`, with `open_sessions` as the one-open-session-per-day guard."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            if type == EventType.IN:
                if closed_sessions:
                    # A row left by a session the caller already saw closed (e.g. its OUT was stamped earlier).
                    placeholders = ",".join(["%s"] * len(closed_sessions))
                    cur.execute(
                        f"""
                        DELETE FROM open_sessions
                        WHERE user_id=%s AND work_date=%s AND session_id IN ({placeholders})
                        """,
                        (int(user_id), created_at.date(), *closed_sessions),
                    )
                # Primary key (user_id, work_date): the losing writer of a concurrent IN fails here.
                with unique_violation_as(StorageConflict, "A session is already open for today"):
                    cur.execute(
                        """
                        INSERT INTO open_sessions(user_id, work_date, session_id)
                        VALUES(%s,%s,%s)
                        """,
                        (int(user_id), created_at.date(), session_id),
                    )
            else:
                cur.execute(
                    "DELETE FROM open_sessions WHERE user_id=%s AND session_id=%s",
                    (int(user_id), session_id),
                )

            cur.execute(
                """
                INSERT INTO attendance_events(
                    user_id, type, method, token, session_id, created_at, latitude, longitude
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    type.value,
                    method.value,
                    token,
                    session_id,
                    created_at,
                    latitude,
                    longitude,
                ),
            )
            return int(cur.lastrowid)

    def query_events(
        self,
        user_id: int,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> Sequence[AttendanceEvent]:
        clauses = ["e.user_id=%s"]
        params: list[object] = [int(user_id)]
        if since is not None:
            clauses.append("e.created_at >= %s")
            params.append(since)
        if until is not None:
            clauses.append("e.created_at <= %s")
            params.append(until)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM attendance_events e
                WHERE {where_clause(clauses)}
                ORDER BY e.created_at ASC, e.event_id ASC
                """,
                tuple(params),
            )
            return [_to_event(r) for r in fetchall(cur)]

    @staticmethod
    def _filters(
        *,
        user_id: Optional[int],
        department: Optional[str],
        since: Optional[datetime],
        until: Optional[datetime],
    ) -> tuple[str, list[object]]:
        clauses: list[str] = []
        params: list[object] = []
        if user_id is not None:
            clauses.append("e.user_id=%s")
            params.append(int(user_id))
        elif department:
            clauses.append("u.department=%s")
            params.append(department)
        if since is not None:
            clauses.append("e.created_at >= %s")
            params.append(since)
        if until is not None:
            clauses.append("e.created_at <= %s")
            params.append(until)
        return where_clause(clauses), params

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
        where, params = self._filters(user_id=user_id, department=department, since=since, until=until)
        paging = ""
        if limit is not None:
            paging = "LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS},
                       u.name, u.email, u.department, u.position
                FROM attendance_events e
                JOIN users u ON u.user_id = e.user_id
                WHERE {where}
                ORDER BY e.created_at DESC, e.event_id DESC
                {paging}
                """,
                tuple(params),
            )
            return [
                AttendanceLogRow(
                    event=_to_event(r),
                    name=r["name"],
                    email=r["email"],
                    department=r.get("department"),
                    position=r.get("position"),
                )
                for r in fetchall(cur)
            ]

    def count_events(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int:
        where, params = self._filters(user_id=user_id, department=department, since=since, until=until)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM attendance_events e
                JOIN users u ON u.user_id = e.user_id
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0
