from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role, UserStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, unique_violation_as, where_clause
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, email, name, password_hash, role, status,
    department, position, device_token, created_at
"""

_UPDATABLE = {
    "email",
    "name",
    "password_hash",
    "role",
    "status",
    "department",
    "position",
    "device_token",
}


def _to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        email=r["email"],
        name=r["name"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        status=UserStatus(r["status"]),
        department=r.get("department"),
        position=r.get("position"),
        device_token=r.get("device_token"),
        created_at=r.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _to_user(r) if r else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            r = fetchone(cur)
            return _to_user(r) if r else None

    def create_user(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        role: Role,
        status: UserStatus,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            with unique_violation_as(ConflictError, "User with this email already exists"):
                cur.execute(
                    """
                    INSERT INTO users(email, name, password_hash, role, status, department, position)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (email, name, password_hash, role.value, status.value, department, position),
                )
            return int(cur.lastrowid)

    def update_user(self, user_id: int, **fields) -> bool:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")
        if not fields:
            return True

        assignments = []
        params: list[object] = []
        for name, value in fields.items():
            assignments.append(f"{name}=%s")
            params.append(value.value if isinstance(value, (Role, UserStatus)) else value)
        params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            with unique_violation_as(ConflictError, "User with this email already exists"):
                cur.execute(f"UPDATE users SET {', '.join(assignments)} WHERE user_id=%s", tuple(params))
            return cur.rowcount > 0 or self._exists(cur, user_id)

    @staticmethod
    def _exists(cur, user_id: int) -> bool:
        # MySQL reports 0 affected rows when values are unchanged.
        cur.execute("SELECT 1 AS found FROM users WHERE user_id=%s", (int(user_id),))
        return fetchone(cur) is not None

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    @staticmethod
    def _filters(*, status, role, department) -> tuple[str, list[object]]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if department:
            clauses.append("department=%s")
            params.append(department)
        return where_clause(clauses), params

    def list_users(
        self,
        *,
        status: Optional[UserStatus] = None,
        role: Optional[Role] = None,
        department: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[User]:
        where, params = self._filters(status=status, role=role, department=department)
        paging = ""
        if limit is not None:
            paging = "LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {where} ORDER BY created_at DESC, user_id DESC {paging}",
                tuple(params),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def count_users(
        self,
        *,
        status: Optional[UserStatus] = None,
        role: Optional[Role] = None,
        department: Optional[str] = None,
    ) -> int:
        where, params = self._filters(status=status, role=role, department=department)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM users WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["total"]) if r else 0
