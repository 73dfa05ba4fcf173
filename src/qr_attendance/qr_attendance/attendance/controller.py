from __future__ import annotations

import logging

from flask import Flask, g, jsonify, request

from ..common.serializers import record_to_dict, session_to_dict, stats_to_dict
from ..common.web import error_response, make_login_required, server_error
from ..container import Container
from ..core.enums import CheckInMethod
from ..core.exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)

# Methods a student's client may claim; manual and system rows are server-side only.
_CLIENT_METHODS = {m.value: m for m in (CheckInMethod.QR, CheckInMethod.CODE)}


def register(app: Flask, container: Container) -> None:
    login_required = make_login_required(container.principals_repo)
    ledger = container.attendance_ledger
    codec = container.token_codec

    def _check_in_response(result):
        body = record_to_dict(result.record)
        body["duplicate"] = result.duplicate
        body["message"] = "Attendance already recorded" if result.duplicate else "Attendance recorded"
        return jsonify(body), 200 if result.duplicate else 201

    @app.route("/attendance", methods=["POST"], endpoint="record_attendance")
    @login_required
    def record_attendance():
        """Check in the current principal.

        Accepts either the raw scanned QR text as ``payload`` or a decoded
        ``sessionId`` (``"method": "code"`` marks a hand-typed id). A repeated
        check-in answers 200 with the original row.
        """

        data = request.get_json(silent=True) or {}
        try:
            if data.get("payload"):
                session_id = codec.decode(data["payload"]).session_id
                method = CheckInMethod.QR
            elif data.get("sessionId"):
                session_id = str(data["sessionId"])
                method = _CLIENT_METHODS.get(str(data.get("method") or CheckInMethod.QR.value))
                if method is None:
                    raise ValidationError("method must be 'qr' or 'code'")
            else:
                raise ValidationError("sessionId is required")

            return _check_in_response(ledger.record(session_id, g.principal, method))
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("check-in failed for user %s", g.principal.id)
            return server_error()

    @app.route("/sessions/<session_id>/attendance", methods=["POST"], endpoint="manual_attendance")
    @login_required
    def manual_attendance(session_id: str):
        data = request.get_json(silent=True) or {}
        try:
            user_id = data.get("userId")
            return _check_in_response(ledger.record_manual(session_id, str(user_id or ""), g.principal))
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("manual check-in failed for session %s", session_id)
            return server_error()

    @app.route("/attendance/me", methods=["GET"], endpoint="my_attendance")
    @login_required
    def my_attendance():
        try:
            return jsonify([record_to_dict(r) for r in ledger.get_for_user(g.principal)]), 200
        except DomainError as e:
            return error_response(e)

    @app.route("/attendance/me/stats", methods=["GET"], endpoint="my_attendance_stats")
    @login_required
    def my_attendance_stats():
        try:
            return jsonify(stats_to_dict(ledger.stats_for_user(g.principal))), 200
        except DomainError as e:
            return error_response(e)

    @app.route("/attendance/active-session", methods=["GET"], endpoint="active_session_status")
    @login_required
    def active_session_status():
        try:
            status = ledger.status_for_active(g.principal)
        except DomainError as e:
            return error_response(e)
        if status.session is None:
            return jsonify({"success": False, "error": "not_found", "message": "No active session found"}), 404
        return jsonify({"session": session_to_dict(status.session), "checkedIn": status.checked_in}), 200

    @app.route("/attendance", methods=["GET"], endpoint="all_attendance")
    @login_required
    def all_attendance():
        try:
            return jsonify([record_to_dict(r) for r in ledger.list_all(g.principal)]), 200
        except DomainError as e:
            return error_response(e)
