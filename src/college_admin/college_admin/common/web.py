"""Flask plumbing shared by the controllers.

Session <-> Principal mapping, request parsing helpers, and the JSON error
boundary that turns domain exceptions into HTTP status codes.
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..access.policy import Principal
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .datetime_utils import parse_iso_date
from .paging import PageRequest

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def store_principal(principal: Principal, *, name: str) -> None:
    session.clear()
    session["identity_id"] = principal.identity_id
    session["role"] = principal.role.value
    session["profile_id"] = principal.profile_id
    session["name"] = name


def current_principal() -> Optional[Principal]:
    if "identity_id" not in session:
        return None
    profile_id = session.get("profile_id")
    return Principal(
        identity_id=int(session["identity_id"]),
        role=Role(session["role"]),
        profile_id=int(profile_id) if profile_id is not None else None,
    )


def login_required(view):
    """Reject anonymous callers with 401; pass the Principal as the first argument."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        principal = current_principal()
        if principal is None:
            return jsonify({"success": False, "message": "Not authenticated"}), 401
        return view(principal, *args, **kwargs)

    return wrapper


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def date_arg(name: str):
    raw = request.args.get(name)
    return parse_iso_date(raw, name) if raw else None


def page_arg(*, default_limit: int = DEFAULT_PAGE_SIZE) -> PageRequest:
    return PageRequest.of(request.args.get("page"), request.args.get("limit"), default_limit=default_limit)


def ok(payload: Optional[dict] = None, status: int = 200, **extra):
    body = {"success": True}
    body.update(payload or {})
    body.update(extra)
    return jsonify(body), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 400)
        logger.info("%s %s -> %s: %s", request.method, request.path, status, exc)
        return jsonify({"success": False, "message": str(exc)}), status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"success": False, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Server error"}), 500
