from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class NFCTag:
    """A physical NFC/RFID checkpoint registered by an admin."""

    tag_id: int
    uid: str
    label: str
    location: Optional[str]
    created_by: int
    created_at: Optional[datetime] = None
