from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import g, jsonify, session

from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    SessionExpired,
    SessionInactive,
    StateError,
    TransientError,
    ValidationError,
)
from ..principals.model import Principal
from ..principals.repository import PrincipalRepository

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS_BY_ERROR = (
    (ValidationError, 400, "validation_error"),
    (AuthorizationError, 403, "forbidden"),
    (NotFoundError, 404, "not_found"),
    (SessionExpired, 410, "session_expired"),
    (SessionInactive, 409, "session_inactive"),
    (StateError, 409, "invalid_state"),
    (TransientError, 503, "unavailable"),
)


def error_response(exc: DomainError):
    for error_type, status, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return jsonify({"success": False, "error": code, "message": str(exc)}), status
    logger.error("unmapped domain error: %r", exc)
    return jsonify({"success": False, "error": "internal_error", "message": str(exc)}), 500


def server_error():
    return jsonify({"success": False, "error": "internal_error", "message": "Internal server error"}), 500


def unauthorized():
    return jsonify({"success": False, "error": "unauthorized", "message": "Login required"}), 401


def current_principal(principals: PrincipalRepository) -> Optional[Principal]:
    """Principal the authentication layer stored in the Flask session, if any."""

    user_id = session.get("user_id")
    if not user_id:
        return None
    return principals.get_by_id(str(user_id))


def make_login_required(principals: PrincipalRepository):
    """Decorator factory: resolve the principal into ``g.principal`` or answer 401."""

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                principal = current_principal(principals)
            except DomainError as e:
                return error_response(e)
            if principal is None:
                return unauthorized()
            g.principal = principal
            return view(*args, **kwargs)

        return wrapper

    return login_required
