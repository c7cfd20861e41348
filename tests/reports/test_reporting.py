import io
from datetime import datetime, timedelta

import pandas as pd
import pytest

from src.attendance_ledger.attendance_ledger.core.enums import ReportPeriod, UserStatus
from src.attendance_ledger.attendance_ledger.core.exceptions import AuthorizationError, ValidationError
from src.attendance_ledger.attendance_ledger.reports.excel import render_excel
from src.attendance_ledger.attendance_ledger.reports.service import AnalyticsService, ReportService, period_start

MONDAY = datetime(2025, 3, 10, 9, 0)


@pytest.fixture
def populated(attendance_repo, users_repo, employee):
    """John: one closed 8h session Monday and an open one Tuesday. Jane (Sales): one closed 4h session."""

    jane = users_repo.add("jane@company.com", department="Sales", name="Jane")
    attendance_repo.add(employee.user_id, "IN", MONDAY, "j1")
    attendance_repo.add(employee.user_id, "OUT", MONDAY + timedelta(hours=8), "j1")
    attendance_repo.add(employee.user_id, "IN", MONDAY + timedelta(days=1), "j2")
    attendance_repo.add(jane.user_id, "IN", MONDAY + timedelta(minutes=30), "s1")
    attendance_repo.add(jane.user_id, "OUT", MONDAY + timedelta(hours=4, minutes=30), "s1")
    return jane


def test_report_summary(attendance_repo, populated):
    report = ReportService(attendance_repo).build_report()
    s = report.summary

    assert s["total_records"] == 5
    assert s["unique_employees"] == 2
    assert s["check_ins"] == 3
    assert s["check_outs"] == 2
    assert s["open_sessions"] == 1
    assert s["working_hours"] == {"total_hours": 12.0, "average_hours_per_session": 6.0, "closed_sessions": 2}
    assert s["department_stats"]["Sales"] == {"check_ins": 1, "check_outs": 1, "employee_count": 1}
    assert s["department_stats"]["Engineering"]["employee_count"] == 1

    hours = {e["employee_name"]: e["total_hours"] for e in report.employees}
    assert hours == {"Jane": "04:00", "John Doe": "08:00"}

    first = report.rows[0]
    assert first["type"] == "IN"
    assert first["date"] == "2025-03-11"


def test_report_filters_by_department_and_range(attendance_repo, populated):
    svc = ReportService(attendance_repo)

    sales = svc.build_report(department="Sales")
    assert sales.summary["unique_employees"] == 1
    assert sales.summary["working_hours"]["total_hours"] == 4.0

    monday_only = svc.build_report(start=MONDAY, end=MONDAY + timedelta(hours=12))
    assert monday_only.summary["open_sessions"] == 0
    assert monday_only.summary["total_records"] == 4


def test_personal_report_only_has_callers_events(attendance_repo, populated, employee_identity):
    report = ReportService(attendance_repo).personal_report(employee_identity)

    assert report.summary["unique_employees"] == 1
    assert {r["email"] for r in report.rows} == {"john.doe@company.com"}


def test_admin_report_requires_admin(attendance_repo, employee_identity):
    with pytest.raises(AuthorizationError):
        ReportService(attendance_repo).admin_report(employee_identity)


def test_excel_has_data_and_summary_sheets(attendance_repo, populated):
    report = ReportService(attendance_repo).build_report(start=MONDAY - timedelta(days=1))

    book = pd.read_excel(io.BytesIO(render_excel(report)), sheet_name=None)

    assert set(book) == {"Attendance Report", "Summary", "Hours"}
    data = book["Attendance Report"]
    assert list(data.columns)[:3] == ["Employee Name", "Email", "Department"]
    assert len(data) == 5
    summary = dict(zip(book["Summary"]["Metric"], book["Summary"]["Value"]))
    assert summary["Report Period"] == "2025-03-09 to Present"


def test_excel_for_empty_report(attendance_repo):
    report = ReportService(attendance_repo).build_report()

    book = pd.read_excel(io.BytesIO(render_excel(report)), sheet_name=None)

    assert set(book) == {"Attendance Report", "Summary"}
    assert len(book["Attendance Report"]) == 0


def test_analytics_summary(attendance_repo, users_repo, populated, admin_identity):
    users_repo.add("pending@company.com", status=UserStatus.PENDING)
    users_repo.add("idle@company.com")

    result = AnalyticsService(attendance_repo, users_repo).summary(
        admin_identity, period="week", now=MONDAY + timedelta(days=2)
    )

    # admin is not an employee: 4 employees, 3 active (john, jane, idle), 1 pending
    assert result["summary"]["totalUsers"] == 4
    assert result["summary"]["activeUsers"] == 3
    assert result["summary"]["pendingUsers"] == 1
    assert result["summary"]["attendanceRate"] == round(2 / 3 * 100, 2)
    assert result["summary"]["averageWorkingHours"] == 6.0
    assert result["summary"]["totalAttendanceRecords"] == 5
    assert result["charts"]["dailyAttendance"] == [
        {"date": "2025-03-10", "checkIns": 2, "checkOuts": 2},
        {"date": "2025-03-11", "checkIns": 1, "checkOuts": 0},
    ]
    methods = {m["method"]: m["count"] for m in result["charts"]["methodAttendance"]}
    assert methods == {"QR": 5}


def test_analytics_rate_is_zero_without_active_employees(attendance_repo, users_repo, admin_identity):
    result = AnalyticsService(attendance_repo, users_repo).summary(admin_identity, period="day", now=MONDAY)

    assert result["summary"]["attendanceRate"] == 0
    assert result["summary"]["averageWorkingHours"] == 0.0


def test_analytics_rejects_unknown_period_and_non_admin(attendance_repo, users_repo, admin_identity, employee_identity):
    svc = AnalyticsService(attendance_repo, users_repo)

    with pytest.raises(ValidationError):
        svc.summary(admin_identity, period="year", now=MONDAY)
    with pytest.raises(AuthorizationError):
        svc.summary(employee_identity, now=MONDAY)


@pytest.mark.parametrize(
    "period, expected",
    [
        ("day", datetime(2025, 3, 12, 0, 0)),
        ("week", datetime(2025, 3, 5, 15, 30)),
        ("month", datetime(2025, 3, 1, 0, 0)),
    ],
)
def test_period_start(period, expected):
    assert period_start(ReportPeriod(period), datetime(2025, 3, 12, 15, 30)) == expected
