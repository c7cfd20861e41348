from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization checks."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class UserStatus(str, Enum):
    """Account lifecycle: registrations wait for admin approval."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class EventType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class CheckInMethod(str, Enum):
    """How the attendance credential was presented."""

    QR = "QR"
    NFC = "NFC"
    RFID = "RFID"
    MANUAL = "MANUAL"


class RequestStatus(str, Enum):
    """Approval workflow state for leave/WFH requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    EMERGENCY = "emergency"


class PolicyViolation(str, Enum):
    """Reasons the reconciler refuses an attendance event."""

    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"


class ReportPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
