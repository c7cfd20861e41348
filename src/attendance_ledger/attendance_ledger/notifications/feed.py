from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..auth.tokens import Identity
from ..common.datetime_utils import now_local
from ..core.constants import NOTIFICATION_LOOKBACK_DAYS, NOTIFICATION_RECENT_LIMIT
from ..core.enums import RequestStatus, Role, UserStatus
from ..requests.repository import RequestRepository
from ..users.repository import UserRepository


@dataclass(frozen=True)
class FeedItem:
    id: str
    type: str
    title: str
    message: str
    created_at: datetime
    action_url: Optional[str] = None
    read: bool = False


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


class NotificationFeed:
    """In-app notifications computed from pending work (admins) or recent decisions (employees)."""

    def __init__(self, users: UserRepository, requests: RequestRepository):
        self._users = users
        self._requests = requests

    def for_identity(self, identity: Identity, *, now: Optional[datetime] = None) -> list[FeedItem]:
        now = now or now_local()
        if identity.role == Role.ADMIN:
            return self._admin_items(now)
        return self._employee_items(identity, now)

    def _admin_items(self, now: datetime) -> list[FeedItem]:
        items: list[FeedItem] = []

        pending_leave = self._requests.count_leave_requests(status=RequestStatus.PENDING)
        if pending_leave > 0:
            items.append(
                FeedItem(
                    id="pending-leave-requests",
                    type="warning",
                    title="Pending Leave Requests",
                    message=f"{_plural(pending_leave, 'leave request')} waiting for your approval",
                    created_at=now,
                    action_url="/dashboard/admin/leave-requests",
                )
            )

        pending_users = self._users.count_users(status=UserStatus.PENDING)
        if pending_users > 0:
            items.append(
                FeedItem(
                    id="pending-users",
                    type="info",
                    title="Pending User Approvals",
                    message=f"{_plural(pending_users, 'user')} waiting for approval",
                    created_at=now,
                    action_url="/dashboard/admin/users",
                )
            )
        return items

    def _employee_items(self, identity: Identity, now: datetime) -> list[FeedItem]:
        since = now - timedelta(days=NOTIFICATION_LOOKBACK_DAYS)
        items: list[FeedItem] = []

        leaves = self._requests.list_leave_requests(
            user_id=identity.user_id, updated_since=since, limit=NOTIFICATION_RECENT_LIMIT
        )
        for row in leaves:
            req = row.request
            if req.status == RequestStatus.PENDING:
                continue
            approved = req.status == RequestStatus.APPROVED
            items.append(
                FeedItem(
                    id=f"leave-{req.status.value}-{req.request_id}",
                    type="success" if approved else "error",
                    title="Leave Request Approved" if approved else "Leave Request Rejected",
                    message=(
                        f"Your {req.leave_type.value} leave from {req.start_date.isoformat()} "
                        f"to {req.end_date.isoformat()} was {req.status.value}"
                    ),
                    created_at=req.reviewed_at or req.updated_at or req.created_at,
                    action_url="/dashboard/emp/leave",
                )
            )

        wfh = self._requests.list_wfh_requests(
            user_id=identity.user_id, updated_since=since, limit=NOTIFICATION_RECENT_LIMIT
        )
        for row in wfh:
            req = row.request
            if req.status == RequestStatus.PENDING:
                continue
            approved = req.status == RequestStatus.APPROVED
            items.append(
                FeedItem(
                    id=f"wfh-{req.status.value}-{req.request_id}",
                    type="success" if approved else "error",
                    title="WFH Request Approved" if approved else "WFH Request Rejected",
                    message=f"Your work-from-home request for {req.work_date.isoformat()} was {req.status.value}",
                    created_at=req.reviewed_at or req.updated_at or req.created_at,
                    action_url="/dashboard/emp/wfh",
                )
            )

        items.sort(key=lambda i: i.created_at, reverse=True)
        return items
