from __future__ import annotations

from typing import Optional, Sequence

from ..auth.guards import require_admin
from ..auth.tokens import Identity
from ..common.validators import optional_text
from ..core.exceptions import ValidationError
from .model import NFCTag
from .repository import NFCTagRepository


class NFCTagService:
    def __init__(self, tags: NFCTagRepository):
        self._tags = tags

    def register_tag(self, identity: Identity, *, uid: str, label: str, location: Optional[str] = None) -> NFCTag:
        require_admin(identity)
        uid = str(uid or "").strip()
        label = str(label or "").strip()
        if not uid or not label:
            raise ValidationError("UID and label are required")

        tag_id = self._tags.create_tag(uid=uid, label=label, location=optional_text(location), created_by=identity.user_id)
        return self._tags.get_by_id(tag_id)

    def list_tags(self, identity: Identity) -> Sequence[NFCTag]:
        return self._tags.list_all()
