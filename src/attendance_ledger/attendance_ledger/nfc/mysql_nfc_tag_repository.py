from __future__ import annotations

from typing import Optional, Sequence

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, unique_violation_as
from .model import NFCTag
from .repository import NFCTagRepository


def _to_tag(r: dict) -> NFCTag:
    return NFCTag(
        tag_id=int(r["tag_id"]),
        uid=r["uid"],
        label=r["label"],
        location=r.get("location"),
        created_by=int(r["created_by"]),
        created_at=r.get("created_at"),
    )


class MySQLNFCTagRepository(NFCTagRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_tag(self, *, uid: str, label: str, location: Optional[str], created_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            with unique_violation_as(ConflictError, "Tag UID already registered"):
                cur.execute(
                    "INSERT INTO nfc_tags(uid, label, location, created_by) VALUES(%s,%s,%s,%s)",
                    (uid, label, location, int(created_by)),
                )
            return int(cur.lastrowid)

    def get_by_id(self, tag_id: int) -> Optional[NFCTag]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT tag_id, uid, label, location, created_by, created_at FROM nfc_tags WHERE tag_id=%s",
                (int(tag_id),),
            )
            r = fetchone(cur)
            return _to_tag(r) if r else None

    def list_all(self) -> Sequence[NFCTag]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT tag_id, uid, label, location, created_by, created_at
                FROM nfc_tags
                ORDER BY created_at DESC, tag_id DESC
                """
            )
            return [_to_tag(r) for r in fetchall(cur)]
