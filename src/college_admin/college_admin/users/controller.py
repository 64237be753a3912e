from __future__ import annotations

from flask import Flask, request, session

from ..common.validators import require_enum
from ..common.web import json_body, login_required, ok, page_arg, store_principal
from ..container import Container
from ..core.enums import Role
from .model import IdentityChanges, NewAccount


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        account = container.user_service.register(NewAccount.from_payload(json_body()))
        return ok(account.to_dict(), status=201, message="Registration successful")

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = json_body()
        principal = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        account = container.user_service.get_account(principal.identity_id)
        store_principal(principal, name=account.identity.full_name)
        return ok(account.to_dict(), message="Login successful")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def auth_logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def auth_me(principal):
        return ok(container.user_service.get_account(principal.identity_id).to_dict())

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @login_required
    def list_users(principal):
        role = request.args.get("role")
        page = container.user_service.list_users(
            principal,
            role=require_enum(role, Role, "role") if role else None,
            search=request.args.get("search") or None,
            paging=page_arg(),
        )
        return ok(page.meta(), users=[u.to_dict() for u in page.items])

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @login_required
    def create_user(principal):
        account = container.user_service.create_user(principal, NewAccount.from_payload(json_body()))
        return ok(account.to_dict(), status=201, message="User created")

    @app.route("/api/users/<int:identity_id>", methods=["GET"], endpoint="get_user")
    @login_required
    def get_user(principal, identity_id: int):
        return ok(container.user_service.get_user(principal, identity_id).to_dict())

    @app.route("/api/users/<int:identity_id>", methods=["PUT"], endpoint="update_user")
    @login_required
    def update_user(principal, identity_id: int):
        identity = container.user_service.update_user(principal, identity_id, IdentityChanges.from_payload(json_body()))
        return ok(user=identity.to_dict())

    @app.route("/api/users/<int:identity_id>/toggle-status", methods=["PATCH"], endpoint="toggle_user_status")
    @login_required
    def toggle_user_status(principal, identity_id: int):
        identity = container.user_service.toggle_status(principal, identity_id)
        state = "activated" if identity.is_active else "deactivated"
        return ok(user=identity.to_dict(), message=f"User {state}")

    @app.route("/api/users/<int:identity_id>", methods=["DELETE"], endpoint="delete_user")
    @login_required
    def delete_user(principal, identity_id: int):
        container.user_service.delete_user(principal, identity_id)
        return ok(message="User deleted")
