from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import NFCTag


class NFCTagRepository(Protocol):
    def create_tag(self, *, uid: str, label: str, location: Optional[str], created_by: int) -> int:
        """Raises ConflictError when the uid is already registered."""

        raise NotImplementedError

    def get_by_id(self, tag_id: int) -> Optional[NFCTag]:
        raise NotImplementedError

    def list_all(self) -> Sequence[NFCTag]:
        """Newest first."""

        raise NotImplementedError
