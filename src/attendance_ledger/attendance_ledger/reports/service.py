from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..attendance.model import AttendanceLogRow, Session
from ..attendance.reconciler import SessionReconciler
from ..attendance.repository import AttendanceRepository
from ..auth.guards import require_admin
from ..auth.tokens import Identity
from ..common.datetime_utils import now_local, start_of_day
from ..common.validators import parse_enum
from ..core.enums import EventType, ReportPeriod, Role, UserStatus
from ..users.repository import UserRepository
from .aggregator import WorkingHours, aggregate, format_hours, tally


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    sessions: list[Session]
    summary: dict
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    employees: list[dict] = field(default_factory=list)


def _row_dict(r: AttendanceLogRow) -> dict:
    e = r.event
    return {
        "employee_name": r.name,
        "email": r.email,
        "department": r.department or "-",
        "position": r.position or "-",
        "date": e.created_at.strftime("%Y-%m-%d"),
        "time": e.created_at.strftime("%H:%M:%S"),
        "type": e.type.value,
        "method": e.method.value,
        "session_id": e.session_id or "-",
        "location": f"{e.latitude:.4f}, {e.longitude:.4f}" if e.location else "-",
    }


def _hours_dict(hours: WorkingHours) -> dict:
    return {
        "total_hours": round(hours.total_hours, 2),
        "average_hours_per_session": round(hours.average_hours_per_session, 2),
        "closed_sessions": hours.session_count,
    }


class ReportService:
    """Tabular attendance reports; rendering (Excel/JSON) happens elsewhere."""

    def __init__(self, attendance: AttendanceRepository, reconciler: Optional[SessionReconciler] = None):
        self._attendance = attendance
        self._reconciler = reconciler or SessionReconciler()

    def build_report(
        self,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> ReportData:
        log_rows = self._attendance.list_log_rows(user_id=user_id, department=department, since=start, until=end)
        events = [r.event for r in log_rows]
        sessions = self._reconciler.pair_sessions(events)
        counts = tally(events)

        departments: dict[str, dict] = {}
        owners: dict[int, AttendanceLogRow] = {}
        for r in log_rows:
            owners.setdefault(r.event.user_id, r)
            dept = departments.setdefault(
                r.department or "Unknown", {"check_ins": 0, "check_outs": 0, "employees": set()}
            )
            dept["check_ins" if r.event.type == EventType.IN else "check_outs"] += 1
            dept["employees"].add(r.event.user_id)

        per_employee = []
        for uid, owner in owners.items():
            hours = aggregate(s for s in sessions if s.user_id == uid)
            per_employee.append(
                {
                    "user_id": uid,
                    "employee_name": owner.name,
                    "email": owner.email,
                    "department": owner.department or "-",
                    "total_hours": format_hours(hours.total_hours),
                    "closed_sessions": hours.session_count,
                }
            )
        per_employee.sort(key=lambda x: x["employee_name"])

        summary = {
            "total_records": counts.total_records,
            "unique_employees": counts.unique_users,
            "check_ins": counts.check_ins,
            "check_outs": counts.check_outs,
            "open_sessions": sum(1 for s in sessions if s.is_open),
            "working_hours": _hours_dict(aggregate(sessions)),
            "department_stats": {
                name: {
                    "check_ins": d["check_ins"],
                    "check_outs": d["check_outs"],
                    "employee_count": len(d["employees"]),
                }
                for name, d in departments.items()
            },
        }
        return ReportData(
            rows=[_row_dict(r) for r in log_rows],
            sessions=sessions,
            summary=summary,
            start=start,
            end=end,
            employees=per_employee,
        )

    def personal_report(
        self,
        identity: Identity,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> ReportData:
        return self.build_report(start=start, end=end, user_id=identity.user_id)

    def admin_report(
        self,
        identity: Identity,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> ReportData:
        require_admin(identity)
        return self.build_report(start=start, end=end, user_id=user_id, department=department)


def period_start(period: ReportPeriod, now: datetime) -> datetime:
    if period == ReportPeriod.DAY:
        return start_of_day(now)
    if period == ReportPeriod.MONTH:
        return start_of_day(now.replace(day=1))
    return now - timedelta(days=7)


class AnalyticsService:
    """Admin dashboard figures for a rolling period."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        reconciler: Optional[SessionReconciler] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._reconciler = reconciler or SessionReconciler()

    def summary(self, identity: Identity, *, period: str = "week", now: Optional[datetime] = None) -> dict:
        require_admin(identity)
        now = now or now_local()
        period_e = parse_enum(ReportPeriod, period or "week", "period")
        start = period_start(period_e, now)

        total_users = self._users.count_users(role=Role.EMPLOYEE)
        active_users = self._users.count_users(role=Role.EMPLOYEE, status=UserStatus.ACTIVE)
        pending_users = self._users.count_users(role=Role.EMPLOYEE, status=UserStatus.PENDING)

        rows: Sequence[AttendanceLogRow] = self._attendance.list_log_rows(since=start, until=now)
        events = sorted((r.event for r in rows), key=lambda e: e.created_at)

        daily: dict[str, dict] = {}
        by_department: dict[str, int] = {}
        by_method: dict[str, int] = {}
        for r in rows:
            e = r.event
            day = daily.setdefault(e.created_at.strftime("%Y-%m-%d"), {"checkIns": 0, "checkOuts": 0})
            day["checkIns" if e.type == EventType.IN else "checkOuts"] += 1
            dept = r.department or "Unknown"
            by_department[dept] = by_department.get(dept, 0) + 1
            by_method[e.method.value] = by_method.get(e.method.value, 0) + 1

        attendees = {e.user_id for e in events}
        rate = (len(attendees) / active_users) * 100 if active_users > 0 else 0.0
        hours = aggregate(self._reconciler.pair_sessions(events))

        return {
            "summary": {
                "totalUsers": total_users,
                "activeUsers": active_users,
                "pendingUsers": pending_users,
                "attendanceRate": round(rate, 2),
                "averageWorkingHours": round(hours.average_hours_per_session, 2),
                "totalAttendanceRecords": len(events),
            },
            "charts": {
                "dailyAttendance": [{"date": d, **counts} for d, counts in sorted(daily.items())],
                "departmentAttendance": [{"department": k, "count": v} for k, v in by_department.items()],
                "methodAttendance": [{"method": k, "count": v} for k, v in by_method.items()],
            },
            "period": period_e.value,
            "startDate": start.isoformat(),
            "endDate": now.isoformat(),
        }
