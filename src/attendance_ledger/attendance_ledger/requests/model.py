from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveType, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    start_date: date
    end_date: date
    reason: str
    leave_type: LeaveType
    status: RequestStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    admin_comments: Optional[str] = None


@dataclass(frozen=True)
class WFHRequest:
    request_id: int
    user_id: int
    work_date: date
    reason: str
    status: RequestStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    admin_comments: Optional[str] = None


@dataclass(frozen=True)
class RequestRow:
    """Read-model for request lists (request joined with its owner)."""

    request: object
    name: str
    email: str
    department: Optional[str]
    position: Optional[str]
