from __future__ import annotations

from flask import jsonify, request

from ..auth.http import admin_required, current_identity, login_required
from ..common.http import json_body
from .model import LeaveRequest, RequestRow, WFHRequest


def _iso(value):
    return value.isoformat() if value else None


def _review_fields(req) -> dict:
    return {
        "status": req.status.value,
        "createdAt": _iso(req.created_at),
        "updatedAt": _iso(req.updated_at),
        "reviewedBy": req.reviewed_by,
        "reviewedAt": _iso(req.reviewed_at),
        "adminComments": req.admin_comments,
    }


def leave_view(req: LeaveRequest) -> dict:
    return {
        "id": req.request_id,
        "userId": req.user_id,
        "startDate": req.start_date.isoformat(),
        "endDate": req.end_date.isoformat(),
        "reason": req.reason,
        "type": req.leave_type.value,
        **_review_fields(req),
    }


def wfh_view(req: WFHRequest) -> dict:
    return {
        "id": req.request_id,
        "userId": req.user_id,
        "date": req.work_date.isoformat(),
        "reason": req.reason,
        **_review_fields(req),
    }


def _row_view(row: RequestRow, view) -> dict:
    data = view(row.request)
    data.update(name=row.name, email=row.email, department=row.department, position=row.position)
    return data


def register(app, container) -> None:
    svc = container.request_service

    # -------- Leave --------
    @app.route("/api/leave", methods=["POST"], endpoint="leave_create")
    @login_required
    def create_leave():
        data = json_body()
        req = svc.create_leave(
            current_identity(),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            reason=data.get("reason"),
            leave_type=data.get("type"),
        )
        return jsonify(message="Leave request submitted successfully", leaveRequest=leave_view(req)), 201

    @app.route("/api/leave", methods=["GET"], endpoint="leave_list")
    @login_required
    def list_leave():
        rows = svc.list_leave(current_identity(), status=request.args.get("status"))
        return jsonify(leaveRequests=[_row_view(r, leave_view) for r in rows])

    @app.route("/api/leave/<int:request_id>", methods=["PATCH"], endpoint="leave_decide")
    @admin_required
    def decide_leave(request_id: int):
        data = json_body()
        req = svc.decide_leave(
            current_identity(),
            request_id=request_id,
            status=data.get("status"),
            admin_comments=data.get("adminComments"),
        )
        return jsonify(message=f"Leave request {req.status.value} successfully", leaveRequest=leave_view(req))

    @app.route("/api/leave/<int:request_id>", methods=["DELETE"], endpoint="leave_delete")
    @login_required
    def delete_leave(request_id: int):
        svc.delete_leave(current_identity(), request_id=request_id)
        return jsonify(message="Leave request deleted successfully")

    # -------- Work from home --------
    @app.route("/api/wfh", methods=["POST"], endpoint="wfh_create")
    @login_required
    def create_wfh():
        data = json_body()
        req = svc.create_wfh(current_identity(), work_date=data.get("date"), reason=data.get("reason"))
        return jsonify(message="WFH request submitted successfully", wfhRequest=wfh_view(req)), 201

    @app.route("/api/wfh", methods=["GET"], endpoint="wfh_list")
    @login_required
    def list_wfh():
        rows = svc.list_wfh(current_identity(), status=request.args.get("status"))
        return jsonify(wfhRequests=[_row_view(r, wfh_view) for r in rows])

    @app.route("/api/wfh/<int:request_id>", methods=["PATCH"], endpoint="wfh_decide")
    @admin_required
    def decide_wfh(request_id: int):
        data = json_body()
        req = svc.decide_wfh(
            current_identity(),
            request_id=request_id,
            status=data.get("status"),
            admin_comments=data.get("adminComments"),
        )
        return jsonify(message=f"WFH request {req.status.value} successfully", wfhRequest=wfh_view(req))

    @app.route("/api/wfh/<int:request_id>", methods=["DELETE"], endpoint="wfh_delete")
    @login_required
    def delete_wfh(request_id: int):
        svc.delete_wfh(current_identity(), request_id=request_id)
        return jsonify(message="WFH request deleted successfully")
