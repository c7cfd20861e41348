from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveType, RequestStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, unique_violation_as, where_clause
from .model import LeaveRequest, RequestRow, WFHRequest
from .repository import RequestRepository

_LEAVE_COLUMNS = """
    r.request_id, r.user_id, r.start_date, r.end_date, r.reason, r.leave_type,
    r.status, r.created_at, r.updated_at, r.reviewed_by, r.reviewed_at, r.admin_comments
"""

_WFH_COLUMNS = """
    r.request_id, r.user_id, r.work_date, r.reason,
    r.status, r.created_at, r.updated_at, r.reviewed_by, r.reviewed_at, r.admin_comments
"""


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        leave_type=LeaveType(r["leave_type"]),
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r.get("updated_at"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        admin_comments=r.get("admin_comments"),
    )


def _to_wfh(r: dict) -> WFHRequest:
    return WFHRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r.get("updated_at"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        admin_comments=r.get("admin_comments"),
    )


def _row(r: dict, request) -> RequestRow:
    return RequestRow(
        request=request,
        name=r["name"],
        email=r["email"],
        department=r.get("department"),
        position=r.get("position"),
    )


def _list_filters(*, status, user_id, updated_since) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    if status is not None:
        clauses.append("r.status=%s")
        params.append(status.value)
    if user_id is not None:
        clauses.append("r.user_id=%s")
        params.append(int(user_id))
    if updated_since is not None:
        clauses.append("r.updated_at >= %s")
        params.append(updated_since)
    return where_clause(clauses), params


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Leave requests --------
    def create_leave(
        self,
        *,
        user_id: int,
        start_date: date,
        end_date: date,
        reason: str,
        leave_type: LeaveType,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(user_id, start_date, end_date, reason, leave_type, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), start_date, end_date, reason, leave_type.value, RequestStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get_leave(self, *, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_LEAVE_COLUMNS} FROM leave_requests r WHERE r.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def list_leave_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        updated_since: Optional[datetime] = None,
        limit: int = 200,
    ) -> Sequence[RequestRow]:
        where, params = _list_filters(status=status, user_id=user_id, updated_since=updated_since)
        params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}, u.name, u.email, u.department, u.position
                FROM leave_requests r
                JOIN users u ON u.user_id = r.user_id
                WHERE {where}
                ORDER BY r.created_at DESC, r.request_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row(r, _to_leave(r)) for r in fetchall(cur)]

    def decide_leave(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        admin_comments: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, admin_comments=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, int(reviewed_by), reviewed_at, admin_comments, int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def delete_leave(self, *, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_requests WHERE request_id=%s", (int(request_id),))
            return cur.rowcount > 0

    def count_leave_requests(self, *, status: Optional[RequestStatus] = None) -> int:
        where, params = _list_filters(status=status, user_id=None, updated_since=None)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM leave_requests r WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    # -------- Work-from-home requests --------
    def create_wfh(self, *, user_id: int, work_date: date, reason: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            with unique_violation_as(ConflictError, "You already have a WFH request for this date"):
                cur.execute(
                    """
                    INSERT INTO wfh_requests(user_id, work_date, reason, status)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(user_id), work_date, reason, RequestStatus.PENDING.value),
                )
            return int(cur.lastrowid)

    def get_wfh(self, *, request_id: int) -> Optional[WFHRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_WFH_COLUMNS} FROM wfh_requests r WHERE r.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_wfh(r) if r else None

    def find_wfh_for_date(self, *, user_id: int, work_date: date) -> Optional[WFHRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_WFH_COLUMNS} FROM wfh_requests r WHERE r.user_id=%s AND r.work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_wfh(r) if r else None

    def list_wfh_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        updated_since: Optional[datetime] = None,
        limit: int = 200,
    ) -> Sequence[RequestRow]:
        where, params = _list_filters(status=status, user_id=user_id, updated_since=updated_since)
        params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_WFH_COLUMNS}, u.name, u.email, u.department, u.position
                FROM wfh_requests r
                JOIN users u ON u.user_id = r.user_id
                WHERE {where}
                ORDER BY r.created_at DESC, r.request_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row(r, _to_wfh(r)) for r in fetchall(cur)]

    def decide_wfh(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        admin_comments: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE wfh_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, admin_comments=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, int(reviewed_by), reviewed_at, admin_comments, int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def delete_wfh(self, *, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM wfh_requests WHERE request_id=%s", (int(request_id),))
            return cur.rowcount > 0
