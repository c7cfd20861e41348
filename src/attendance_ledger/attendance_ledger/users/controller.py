from __future__ import annotations

from flask import jsonify, request

from ..auth.http import admin_required, current_identity, login_required
from ..common.http import json_body, page_view


def register(app, container) -> None:
    auth = container.auth_service
    users = container.user_service

    # -------- Auth --------
    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def register_account():
        data = json_body()
        user = auth.register(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
            department=data.get("department"),
            position=data.get("position"),
        )
        return (
            jsonify(
                message="Registration successful. Please wait for admin approval.",
                user=user.public_view(),
            ),
            201,
        )

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = json_body()
        result = auth.login(data.get("email"), data.get("password"))
        return jsonify(message="Login successful", token=result.token, user=result.user.public_view())

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        return jsonify(user=users.get_profile(current_identity()).public_view())

    # -------- Self-service profile --------
    @app.route("/api/profile", methods=["PUT"], endpoint="profile_update")
    @login_required
    def update_profile():
        data = json_body()
        user = users.update_profile(
            current_identity(),
            name=data.get("name"),
            department=data.get("department"),
            position=data.get("position"),
        )
        return jsonify(message="Profile updated", user=user.public_view())

    @app.route("/api/profile/password", methods=["PUT"], endpoint="profile_password")
    @login_required
    def change_password():
        data = json_body()
        users.change_password(
            current_identity(),
            current_password=data.get("currentPassword"),
            new_password=data.get("newPassword"),
        )
        return jsonify(message="Password updated successfully")

    @app.route("/api/profile/device-token", methods=["POST"], endpoint="profile_device_token")
    @login_required
    def device_token():
        users.set_device_token(current_identity(), json_body().get("deviceToken"))
        return jsonify(message="Device token saved")

    # -------- Admin user management --------
    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_users")
    @admin_required
    def list_users():
        page = users.list_users(
            current_identity(),
            status=request.args.get("status"),
            role=request.args.get("role"),
            department=request.args.get("department"),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return jsonify(page_view(page, lambda u: u.public_view()))

    @app.route("/api/admin/users", methods=["POST"], endpoint="admin_create_user")
    @admin_required
    def create_user():
        data = json_body()
        user = users.create_user(
            current_identity(),
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
            role=data.get("role"),
            status=data.get("status"),
            department=data.get("department"),
            position=data.get("position"),
        )
        return jsonify(message="User created successfully", user=user.public_view()), 201

    @app.route("/api/admin/users/<int:user_id>", methods=["PUT"], endpoint="admin_update_user")
    @admin_required
    def update_user(user_id: int):
        data = json_body()
        changes = {k: data.get(k) for k in ("name", "email", "role", "status", "department", "position", "password")}
        user = users.update_user(current_identity(), user_id=user_id, **changes)
        return jsonify(message="User updated successfully", user=user.public_view())

    @app.route("/api/admin/users/<int:user_id>", methods=["DELETE"], endpoint="admin_delete_user")
    @admin_required
    def delete_user(user_id: int):
        users.delete_user(current_identity(), user_id=user_id)
        return jsonify(message="User deleted successfully")

    @app.route("/api/admin/users/<int:user_id>/status", methods=["PATCH"], endpoint="admin_user_status")
    @admin_required
    def set_status(user_id: int):
        user = users.set_status(current_identity(), user_id=user_id, status=json_body().get("status"))
        return jsonify(message=f"User {user.status.value}", user=user.public_view())
