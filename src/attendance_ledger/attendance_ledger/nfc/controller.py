from __future__ import annotations

from flask import jsonify

from ..auth.http import admin_required, current_identity
from ..common.http import json_body
from .model import NFCTag


def tag_view(tag: NFCTag) -> dict:
    return {
        "id": tag.tag_id,
        "uid": tag.uid,
        "label": tag.label,
        "location": tag.location,
        "createdBy": tag.created_by,
        "createdAt": tag.created_at.isoformat() if tag.created_at else None,
    }


def register(app, container) -> None:
    svc = container.nfc_service

    @app.route("/api/admin/nfc-tags", methods=["GET"], endpoint="nfc_tags")
    @admin_required
    def list_tags():
        return jsonify(tags=[tag_view(t) for t in svc.list_tags(current_identity())])

    @app.route("/api/admin/nfc-tags", methods=["POST"], endpoint="nfc_tag_create")
    @admin_required
    def create_tag():
        data = json_body()
        tag = svc.register_tag(
            current_identity(),
            uid=data.get("uid"),
            label=data.get("label"),
            location=data.get("location"),
        )
        return jsonify(message="NFC tag registered", tag=tag_view(tag)), 201
