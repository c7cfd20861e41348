from __future__ import annotations

from flask import Response, jsonify, request

from ..auth.http import admin_required, current_identity, login_required
from ..common.datetime_utils import now_local
from ..common.http import query_datetime, query_int
from .excel import XLSX_MIMETYPE, render_excel
from .service import ReportData


def _report_response(report: ReportData, filename_prefix: str):
    if (request.args.get("format") or "json").lower() == "excel":
        filename = f"{filename_prefix}_{now_local().strftime('%Y-%m-%d')}.xlsx"
        return Response(
            render_excel(report),
            mimetype=XLSX_MIMETYPE,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    return jsonify(summary=report.summary, employees=report.employees, data=report.rows)


def register(app, container) -> None:
    reports = container.report_service
    analytics = container.analytics_service

    @app.route("/api/admin/reports", methods=["GET"], endpoint="admin_reports")
    @admin_required
    def admin_report():
        report = reports.admin_report(
            current_identity(),
            start=query_datetime("startDate"),
            end=query_datetime("endDate", end_of_day=True),
            user_id=query_int("userId"),
            department=request.args.get("department") or None,
        )
        return _report_response(report, "attendance_report")

    @app.route("/api/reports/personal", methods=["GET"], endpoint="personal_report")
    @login_required
    def personal_report():
        report = reports.personal_report(
            current_identity(),
            start=query_datetime("startDate"),
            end=query_datetime("endDate", end_of_day=True),
        )
        return _report_response(report, "my_attendance")

    @app.route("/api/admin/analytics", methods=["GET"], endpoint="admin_analytics")
    @admin_required
    def admin_analytics():
        return jsonify(analytics.summary(current_identity(), period=request.args.get("period") or "week"))
