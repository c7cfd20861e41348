from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveType, RequestStatus
from .model import LeaveRequest, RequestRow, WFHRequest


class RequestRepository(Protocol):
    # Leave requests
    def create_leave(
        self,
        *,
        user_id: int,
        start_date: date,
        end_date: date,
        reason: str,
        leave_type: LeaveType,
    ) -> int:
        raise NotImplementedError

    def get_leave(self, *, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_leave_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        updated_since: Optional[datetime] = None,
        limit: int = 200,
    ) -> Sequence[RequestRow]:
        """Newest first, joined with the requesting user."""

        raise NotImplementedError

    def decide_leave(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        admin_comments: Optional[str] = None,
    ) -> bool:
        """Only pending requests can be decided; returns False otherwise."""

        raise NotImplementedError

    def delete_leave(self, *, request_id: int) -> bool:
        raise NotImplementedError

    def count_leave_requests(self, *, status: Optional[RequestStatus] = None) -> int:
        raise NotImplementedError

    # Work-from-home requests
    def create_wfh(self, *, user_id: int, work_date: date, reason: str) -> int:
        """Raises ConflictError when the user already has a request for work_date."""

        raise NotImplementedError

    def get_wfh(self, *, request_id: int) -> Optional[WFHRequest]:
        raise NotImplementedError

    def find_wfh_for_date(self, *, user_id: int, work_date: date) -> Optional[WFHRequest]:
        raise NotImplementedError

    def list_wfh_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        updated_since: Optional[datetime] = None,
        limit: int = 200,
    ) -> Sequence[RequestRow]:
        raise NotImplementedError

    def decide_wfh(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        admin_comments: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete_wfh(self, *, request_id: int) -> bool:
        raise NotImplementedError
