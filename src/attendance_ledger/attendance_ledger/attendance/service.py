from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..auth.guards import require_admin
from ..auth.tokens import Identity, TokenService
from ..common.datetime_utils import now_local, start_of_day
from ..common.locks import KeyedLocks
from ..common.paging import Page
from ..common.validators import normalize_paging, parse_enum, require_non_empty
from ..core.constants import NFC_TAG_PREFIX
from ..core.enums import CheckInMethod, EventType
from ..core.exceptions import (
    AlreadyCheckedIn,
    InvalidToken,
    NotFoundError,
    StorageConflict,
    ValidationError,
)
from ..notifications.notifier import Notifier
from ..reports.aggregator import aggregate
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceEvent, AttendanceLogRow, AttendanceStatusView
from .reconciler import SessionReconciler
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _coordinate(value, field_name: str, bound: float) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not -bound <= v <= bound:
        raise ValidationError(f"{field_name} is out of range")
    return v


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        tokens: TokenService,
        *,
        notifier: Optional[Notifier] = None,
        reconciler: Optional[SessionReconciler] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._tokens = tokens
        self._notifier = notifier
        self._reconciler = reconciler or SessionReconciler()
        self._locks = locks or KeyedLocks()

    def _active_user(self, user_id: int) -> User:
        try:
            user = self._users.get_by_id(int(user_id))
        except (TypeError, ValueError):
            raise ValidationError("userId must be an integer")
        if not user or not user.is_active:
            raise NotFoundError("User not found or inactive")
        return user

    def record_event(
        self,
        user_id: int,
        event_type,
        method: CheckInMethod,
        token: str,
        *,
        latitude=None,
        longitude=None,
        now: Optional[datetime] = None,
    ) -> AttendanceEvent:
        """Read the user's ledger, decide admission, append. One retry on a storage race."""

        event_type = parse_enum(EventType, event_type, "type")
        lat = _coordinate(latitude, "latitude", 90)
        lng = _coordinate(longitude, "longitude", 180)

        with self._locks.hold(int(user_id)):
            try:
                event = self._admit_and_append(user_id, event_type, method, token, lat, lng, now)
            except StorageConflict:
                logger.warning("admission race for user %s, retrying once", user_id)
                event = self._admit_and_append(user_id, event_type, method, token, lat, lng, now)

        logger.info(
            "recorded %s for user %s via %s (session %s)",
            event.type.value,
            event.user_id,
            event.method.value,
            event.session_id,
        )
        self._notify(event)
        return event

    def _admit_and_append(self, user_id, event_type, method, token, lat, lng, now) -> AttendanceEvent:
        at = now or now_local()
        history = self._attendance.query_events(int(user_id), until=at)
        admission = self._reconciler.admit_event(history, event_type, at)
        if not admission.admitted:
            raise AlreadyCheckedIn()

        closed_sessions = ()
        if event_type == EventType.IN:
            # Admitted, so every IN seen for this day is closed.
            seen = {e.session_id for e in history if e.type == EventType.IN and e.created_at.date() == at.date()}
            closed_sessions = tuple(sorted(seen))

        event_id = self._attendance.append_event(
            user_id=int(user_id),
            type=event_type,
            method=method,
            token=token,
            session_id=admission.session_id,
            created_at=at,
            latitude=lat,
            longitude=lng,
            closed_sessions=closed_sessions,
        )
        return AttendanceEvent(
            event_id=event_id,
            user_id=int(user_id),
            type=event_type,
            method=method,
            token=token,
            session_id=admission.session_id,
            created_at=at,
            latitude=lat,
            longitude=lng,
        )

    def _notify(self, event: AttendanceEvent) -> None:
        if self._notifier is None:
            return
        try:
            user = self._users.get_by_id(event.user_id)
            if not user or not user.device_token:
                return
            verb = event.type.value.lower()
            self._notifier.send(
                user.device_token,
                f"Check {verb} successful",
                f"You have successfully checked {verb} at {event.created_at.strftime('%H:%M:%S')}",
                {
                    "type": "attendance",
                    "attendanceType": event.type.value,
                    "timestamp": event.created_at.isoformat(),
                },
            )
        except Exception:
            # The event is already stored; delivery problems never undo it.
            logger.exception("push notification failed for user %s", event.user_id)

    def scan_qr(
        self,
        user_id: int,
        *,
        qr_token: str,
        event_type,
        latitude=None,
        longitude=None,
        now: Optional[datetime] = None,
    ) -> AttendanceEvent:
        qr_token = require_non_empty(qr_token, "QR token")
        if self._tokens.verify_attendance(qr_token) is None:
            raise InvalidToken("Invalid or expired QR code")

        self._active_user(user_id)
        return self.record_event(
            user_id, event_type, CheckInMethod.QR, qr_token, latitude=latitude, longitude=longitude, now=now
        )

    def tap_nfc(
        self,
        user_id: int,
        *,
        tag_uid: str,
        event_type,
        latitude=None,
        longitude=None,
        now: Optional[datetime] = None,
    ) -> AttendanceEvent:
        if not tag_uid or not event_type:
            raise ValidationError("Tag UID and type are required")
        tag_uid = require_non_empty(tag_uid, "Tag UID")

        self._active_user(user_id)
        method = CheckInMethod.NFC if tag_uid.startswith(NFC_TAG_PREFIX) else CheckInMethod.RFID
        return self.record_event(
            user_id, event_type, method, tag_uid, latitude=latitude, longitude=longitude, now=now
        )

    def record_manual(
        self,
        identity: Identity,
        *,
        user_id: int,
        event_type,
        now: Optional[datetime] = None,
    ) -> AttendanceEvent:
        require_admin(identity)
        if not user_id or not event_type:
            raise ValidationError("userId and type are required")
        self._active_user(user_id)
        return self.record_event(
            user_id, event_type, CheckInMethod.MANUAL, f"manual:{identity.user_id}", now=now
        )

    def list_logs(
        self,
        identity: Identity,
        *,
        page=1,
        limit=None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[int] = None,
    ) -> Page[AttendanceLogRow]:
        page_i, limit_i = normalize_paging(page, limit)
        if not identity.is_admin:
            user_id = identity.user_id

        rows = self._attendance.list_log_rows(
            user_id=user_id, since=start, until=end, limit=limit_i, offset=(page_i - 1) * limit_i
        )
        total = self._attendance.count_events(user_id=user_id, since=start, until=end)
        return Page(items=list(rows), page=page_i, limit=limit_i, total=total)

    def status(self, user_id: int, *, now: Optional[datetime] = None) -> AttendanceStatusView:
        now = now or now_local()
        midnight = start_of_day(now)
        # Look back one extra day so a session opened yesterday still shows as open.
        history = self._attendance.query_events(int(user_id), since=midnight - timedelta(days=1), until=now)

        sessions_today = [s for s in self._reconciler.pair_sessions(history) if s.started_at >= midnight]
        return AttendanceStatusView(
            open_session=self._reconciler.open_session(history),
            sessions_today=sessions_today,
            hours_today=aggregate(sessions_today).total_hours,
        )
