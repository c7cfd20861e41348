from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..auth.guards import require_admin, require_owner_or_admin
from ..auth.tokens import Identity
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import optional_text, parse_enum, require_non_empty
from ..core.enums import LeaveType, RequestStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import LeaveRequest, RequestRow, WFHRequest
from .repository import RequestRepository

logger = logging.getLogger(__name__)


def _as_date(value, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    v = require_non_empty(value, field_name)
    try:
        return parse_iso_date(v[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def _status_filter(status: Optional[str]) -> Optional[RequestStatus]:
    if not status or status == "all":
        return None
    return parse_enum(RequestStatus, status, "status")


def _decision(status: str) -> RequestStatus:
    decided = parse_enum(RequestStatus, status, "status") if status else None
    if decided not in {RequestStatus.APPROVED, RequestStatus.REJECTED}:
        raise ValidationError("Valid status (approved/rejected) is required")
    return decided


class RequestService:
    """Leave and work-from-home approval workflows."""

    def __init__(self, requests: RequestRepository):
        self._requests = requests

    # -------- Leave --------
    def create_leave(
        self,
        identity: Identity,
        *,
        start_date,
        end_date,
        reason: str,
        leave_type: str,
    ) -> LeaveRequest:
        if not start_date or not end_date or not reason or not leave_type:
            raise ValidationError("All fields are required")

        start = _as_date(start_date, "startDate")
        end = _as_date(end_date, "endDate")
        if end < start:
            raise ValidationError("End date must be on or after start date")

        request_id = self._requests.create_leave(
            user_id=identity.user_id,
            start_date=start,
            end_date=end,
            reason=require_non_empty(reason, "Reason"),
            leave_type=parse_enum(LeaveType, leave_type, "type"),
        )
        return self._requests.get_leave(request_id=request_id)

    def list_leave(self, identity: Identity, *, status: Optional[str] = None) -> Sequence[RequestRow]:
        user_id = None if identity.is_admin else identity.user_id
        return self._requests.list_leave_requests(status=_status_filter(status), user_id=user_id)

    def decide_leave(
        self,
        identity: Identity,
        *,
        request_id: int,
        status: str,
        admin_comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        require_admin(identity)
        decided = _decision(status)

        req = self._requests.get_leave(request_id=int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Request has already been processed")

        ok = self._requests.decide_leave(
            request_id=int(request_id),
            status=decided,
            reviewed_by=identity.user_id,
            reviewed_at=now or now_local(),
            admin_comments=optional_text(admin_comments),
        )
        if not ok:
            raise ConflictError("Request has already been processed")
        logger.info("leave request %s %s by admin %s", request_id, decided.value, identity.user_id)
        return self._requests.get_leave(request_id=int(request_id))

    def delete_leave(self, identity: Identity, *, request_id: int) -> None:
        req = self._requests.get_leave(request_id=int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        require_owner_or_admin(identity, req.user_id, "Unauthorized to delete this request")
        if req.status == RequestStatus.APPROVED:
            raise ValidationError("Cannot delete approved leave requests")
        self._requests.delete_leave(request_id=int(request_id))

    # -------- Work from home --------
    def create_wfh(
        self,
        identity: Identity,
        *,
        work_date,
        reason: str,
        today: Optional[date] = None,
    ) -> WFHRequest:
        if not work_date or not reason:
            raise ValidationError("Date and reason are required")

        day = _as_date(work_date, "date")
        if day < (today or now_local().date()):
            raise ValidationError("WFH date cannot be in the past")

        if self._requests.find_wfh_for_date(user_id=identity.user_id, work_date=day):
            raise ConflictError("You already have a WFH request for this date")

        request_id = self._requests.create_wfh(
            user_id=identity.user_id,
            work_date=day,
            reason=require_non_empty(reason, "Reason"),
        )
        return self._requests.get_wfh(request_id=request_id)

    def list_wfh(self, identity: Identity, *, status: Optional[str] = None) -> Sequence[RequestRow]:
        user_id = None if identity.is_admin else identity.user_id
        return self._requests.list_wfh_requests(status=_status_filter(status), user_id=user_id)

    def decide_wfh(
        self,
        identity: Identity,
        *,
        request_id: int,
        status: str,
        admin_comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WFHRequest:
        require_admin(identity)
        decided = _decision(status)

        req = self._requests.get_wfh(request_id=int(request_id))
        if not req:
            raise NotFoundError("WFH request not found")
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Request has already been processed")

        ok = self._requests.decide_wfh(
            request_id=int(request_id),
            status=decided,
            reviewed_by=identity.user_id,
            reviewed_at=now or now_local(),
            admin_comments=optional_text(admin_comments),
        )
        if not ok:
            raise ConflictError("Request has already been processed")
        logger.info("wfh request %s %s by admin %s", request_id, decided.value, identity.user_id)
        return self._requests.get_wfh(request_id=int(request_id))

    def delete_wfh(self, identity: Identity, *, request_id: int) -> None:
        req = self._requests.get_wfh(request_id=int(request_id))
        if not req:
            raise NotFoundError("WFH request not found")
        require_owner_or_admin(identity, req.user_id, "Unauthorized to delete this request")
        if req.status == RequestStatus.APPROVED:
            raise ValidationError("Cannot delete approved WFH requests")
        self._requests.delete_wfh(request_id=int(request_id))
