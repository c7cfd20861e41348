from __future__ import annotations

from flask import jsonify, request

from ..auth.http import admin_required, current_identity, login_required
from ..common.http import json_body, page_view, query_datetime, query_int
from .model import AttendanceEvent, AttendanceLogRow, Session
from .qr_image import render_qr_data_url


def event_view(e: AttendanceEvent) -> dict:
    return {
        "id": e.event_id,
        "userId": e.user_id,
        "type": e.type.value,
        "method": e.method.value,
        "sessionId": e.session_id,
        "timestamp": e.created_at.isoformat(),
        "latitude": e.latitude,
        "longitude": e.longitude,
    }


def log_row_view(r: AttendanceLogRow) -> dict:
    data = event_view(r.event)
    data.update(name=r.name, email=r.email, department=r.department, position=r.position)
    return data


def session_view(s: Session) -> dict:
    hours = s.duration_hours()
    return {
        "sessionId": s.session_id,
        "checkIn": s.check_in.created_at.isoformat() if s.check_in else None,
        "checkOut": s.check_out.created_at.isoformat() if s.check_out else None,
        "hours": round(hours, 2) if hours is not None else None,
    }


def register(app, container) -> None:
    svc = container.attendance_service

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="attendance_scan")
    @login_required
    def scan():
        data = json_body()
        event = svc.scan_qr(
            current_identity().user_id,
            qr_token=data.get("qrToken"),
            event_type=data.get("type"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )
        verb = "in" if event.type.value == "IN" else "out"
        return jsonify(message=f"Successfully checked {verb}", attendance=event_view(event)), 201

    @app.route("/api/attendance/nfc", methods=["POST"], endpoint="attendance_nfc")
    @login_required
    def nfc():
        data = json_body()
        event = svc.tap_nfc(
            current_identity().user_id,
            tag_uid=data.get("tagUid"),
            event_type=data.get("type"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )
        verb = "in" if event.type.value == "IN" else "out"
        return jsonify(message=f"Successfully checked {verb} via {event.method.value}", attendance=event_view(event)), 201

    @app.route("/api/attendance/logs", methods=["GET"], endpoint="attendance_logs")
    @login_required
    def logs():
        page = svc.list_logs(
            current_identity(),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            start=query_datetime("startDate"),
            end=query_datetime("endDate", end_of_day=True),
            user_id=query_int("userId"),
        )
        return jsonify(page_view(page, log_row_view))

    @app.route("/api/attendance/status", methods=["GET"], endpoint="attendance_status")
    @login_required
    def status():
        view = svc.status(current_identity().user_id)
        return jsonify(
            nextAction=view.next_action.value,
            openSession=session_view(view.open_session) if view.open_session else None,
            sessionsToday=[session_view(s) for s in view.sessions_today],
            hoursToday=round(view.hours_today, 2),
        )

    @app.route("/api/admin/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    @admin_required
    def manual():
        data = json_body()
        event = svc.record_manual(current_identity(), user_id=data.get("userId"), event_type=data.get("type"))
        return jsonify(message="Attendance recorded", attendance=event_view(event)), 201

    @app.route("/api/admin/generate-qr", methods=["POST"], endpoint="generate_qr")
    @admin_required
    def generate_qr():
        data = json_body()
        issued = container.tokens.issue_attendance_token(
            purpose=data.get("purpose") or "attendance",
            expires_in_minutes=data.get("expiryMinutes") or container.qr_expiry_minutes,
        )
        return jsonify(
            qrToken=issued.value,
            qrCodeImage=render_qr_data_url(issued.value),
            purpose=issued.purpose,
            expiresAt=issued.expires_at.isoformat(),
            expiresInMinutes=issued.expires_in_minutes,
        )
