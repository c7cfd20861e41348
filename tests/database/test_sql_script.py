from pathlib import Path

from src.attendance_ledger.attendance_ledger.database.bootstrap import (
    _strip_comments,
    _strip_create_db_and_use,
    iter_sql_statements,
)

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_split_keeps_semicolons_inside_quotes():
    sql = "INSERT INTO t VALUES ('a;b');\nINSERT INTO t VALUES (\"c;d\");  \n  "

    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('a;b')", 'INSERT INTO t VALUES ("c;d")']


def test_split_handles_escaped_quotes_and_trailing_statement():
    sql = r"INSERT INTO t VALUES ('it\'s;fine'); SELECT 1"

    assert list(iter_sql_statements(sql)) == [r"INSERT INTO t VALUES ('it\'s;fine')", "SELECT 1"]


def test_schema_creates_every_table_without_database_statements():
    sql = _strip_create_db_and_use(_strip_comments(SCHEMA.read_text(encoding="utf-8")))
    statements = list(iter_sql_statements(sql))

    created = [s.split("EXISTS", 1)[1].split("(", 1)[0].strip() for s in statements]
    assert created == ["users", "attendance_events", "open_sessions", "leave_requests", "wfh_requests", "nfc_tags"]
    assert "PRIMARY KEY (user_id, work_date)" in statements[2]
