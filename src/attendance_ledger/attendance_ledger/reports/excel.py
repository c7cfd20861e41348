from __future__ import annotations

import io

import pandas as pd

from .service import ReportData

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_COLUMNS = {
    "employee_name": "Employee Name",
    "email": "Email",
    "department": "Department",
    "position": "Position",
    "date": "Date",
    "time": "Time",
    "type": "Type",
    "method": "Method",
    "session_id": "Session ID",
    "location": "Location",
}


def _summary_frame(report: ReportData) -> pd.DataFrame:
    s = report.summary
    period = (
        f"{report.start.strftime('%Y-%m-%d') if report.start else 'All time'} to "
        f"{report.end.strftime('%Y-%m-%d') if report.end else 'Present'}"
    )
    rows = [
        ("Total Employees", s["unique_employees"]),
        ("Total Records", s["total_records"]),
        ("Total Check-ins", s["check_ins"]),
        ("Total Check-outs", s["check_outs"]),
        ("Open Sessions", s["open_sessions"]),
        ("Total Hours", s["working_hours"]["total_hours"]),
        ("Average Hours / Session", s["working_hours"]["average_hours_per_session"]),
        ("Report Period", period),
    ]
    return pd.DataFrame(rows, columns=["Metric", "Value"])


def render_excel(report: ReportData, *, sheet_name: str = "Attendance Report") -> bytes:
    """Write the report rows and summary into an in-memory .xlsx workbook."""

    df = pd.DataFrame(report.rows, columns=list(_COLUMNS)).rename(columns=_COLUMNS)

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
        _summary_frame(report).to_excel(writer, index=False, sheet_name="Summary")
        if report.employees:
            pd.DataFrame(report.employees).to_excel(writer, index=False, sheet_name="Hours")
    return output.getvalue()
