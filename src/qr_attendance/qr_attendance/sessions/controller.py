from __future__ import annotations

import logging

from flask import Flask, Response, g, jsonify, request

from ..common.serializers import session_to_dict
from ..common.web import error_response, make_login_required, server_error
from ..container import Container
from ..core.constants import DEFAULT_SESSION_LIST_LIMIT
from ..core.exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    login_required = make_login_required(container.principals_repo)
    registry = container.session_registry
    codec = container.token_codec

    def _no_active_session():
        return jsonify({"success": False, "error": "not_found", "message": "No active session found"}), 404

    @app.route("/sessions", methods=["POST"], endpoint="create_session")
    @login_required
    def create_session():
        data = request.get_json(silent=True) or {}
        try:
            missing = [f for f in ("name", "durationMinutes") if data.get(f) in (None, "")]
            if missing:
                raise ValidationError(f"Missing fields: {', '.join(missing)}")

            session = registry.create(data["name"], data["durationMinutes"], g.principal)
            return jsonify(session_to_dict(session)), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("create session failed")
            return server_error()

    @app.route("/sessions", methods=["GET"], endpoint="list_sessions")
    @login_required
    def list_sessions():
        try:
            raw = request.args.get("limit", "").strip()
            if not raw:
                limit = DEFAULT_SESSION_LIST_LIMIT
            elif raw.lstrip("-").isdigit():
                limit = int(raw)
            else:
                raise ValidationError("limit must be an integer")
            return jsonify([session_to_dict(s) for s in registry.list_sessions(g.principal, limit=limit)]), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("list sessions failed")
            return server_error()

    @app.route("/sessions/active", methods=["GET"], endpoint="active_session")
    def active_session():
        # Public: scanners poll this before a student logs in.
        try:
            session = registry.get_active()
        except DomainError as e:
            return error_response(e)
        if session is None:
            return _no_active_session()
        return jsonify(session_to_dict(session)), 200

    @app.route("/sessions/active/qr", methods=["GET"], endpoint="active_session_qr")
    @login_required
    def active_session_qr():
        try:
            session = registry.get_active()
        except DomainError as e:
            return error_response(e)
        if session is None:
            return _no_active_session()
        return jsonify({"session": session_to_dict(session), "payload": codec.encode(session)}), 200

    @app.route("/sessions/active/qr.png", methods=["GET"], endpoint="active_session_qr_image")
    @login_required
    def active_session_qr_image():
        try:
            session = registry.get_active()
            if session is None:
                return _no_active_session()
            png = codec.render_png(codec.encode(session))
            return Response(png, mimetype="image/png")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("QR rendering failed")
            return server_error()

    @app.route("/sessions/<session_id>", methods=["GET"], endpoint="get_session")
    @login_required
    def get_session(session_id: str):
        try:
            return jsonify(session_to_dict(registry.get(session_id))), 200
        except DomainError as e:
            return error_response(e)

    @app.route("/sessions/<session_id>/expire", methods=["POST"], endpoint="expire_session")
    @login_required
    def expire_session(session_id: str):
        try:
            outcome = registry.expire(session_id, g.principal)
            return jsonify(
                {
                    "absenteeCount": outcome.absentee_count,
                    "transitioned": outcome.transitioned,
                    "backfillComplete": outcome.backfill_complete,
                    "session": session_to_dict(outcome.session),
                }
            ), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("expire session %s failed", session_id)
            return server_error()
