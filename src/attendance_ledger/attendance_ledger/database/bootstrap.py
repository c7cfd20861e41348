from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_ADMIN = ("admin@company.com", "admin123", "System Administrator", "IT", "Administrator")
DEMO_EMPLOYEES = (
    ("john.doe@company.com", "employee123", "John Doe", "Engineering", "Software Developer"),
    ("jane.smith@company.com", "employee123", "Jane Smith", "Marketing", "Marketing Manager"),
    ("mike.wilson@company.com", "employee123", "Mike Wilson", "Sales", "Sales Representative"),
)


def _connection(db_config: dict) -> DatabaseConnection:
    # Bootstrap runs before (and independently of) the app container; no singleton here.
    return DatabaseConnection(DBConfig.from_dict(db_config))


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable whatever the configured database name is.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside quotes."""

    buf: list[str] = []
    quote = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    conn_factory = _connection(db_config)
    name = conn_factory.config.database
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)

    sql = Path(schema_path).read_text(encoding="utf-8")
    sql = _strip_create_db_and_use(_strip_comments(sql))

    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("schema applied from %s", schema_path)


def ensure_demo_users(db_config: dict) -> None:
    """Upsert the demo admin and a few active employees (idempotent)."""

    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor(dictionary=True)

        def upsert(email: str, password: str, name: str, department: str, position: str, role: str) -> None:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE users
                    SET name=%s, password_hash=%s, role=%s, status='active', department=%s, position=%s
                    WHERE email=%s
                    """,
                    (name, password_hash, role, department, position, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users(email, name, password_hash, role, status, department, position)
                    VALUES(%s,%s,%s,%s,'active',%s,%s)
                    """,
                    (email, name, password_hash, role, department, position),
                )

        upsert(*DEMO_ADMIN, role="admin")
        for employee in DEMO_EMPLOYEES:
            upsert(*employee, role="employee")

        conn.commit()
    finally:
        conn.close()
    logger.info("demo users ready (%d)", 1 + len(DEMO_EMPLOYEES))


def list_tables(db_config: dict) -> list[str]:
    conn = _connection(db_config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
