from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.web import api_login_required, error_response
from ..container import Container
from ..core.constants import SESSION_LIFETIME_HOURS
from ..core.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(hours=SESSION_LIFETIME_HOURS)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or {}
        username = str(data.get("username") or "")
        password = str(data.get("password") or "")

        try:
            coach = container.auth_service.authenticate(username, password)
        except ValidationError as e:
            return error_response("Invalid input data", 400, details=str(e))
        except AuthenticationError:
            return error_response("Invalid credentials", 401)
        except Exception:
            logger.exception("login failed")
            return error_response("Internal server error", 500)

        session.clear()
        session.permanent = True
        session["coach_id"] = coach.coach_id
        session["username"] = coach.username
        session["age_group"] = coach.age_group

        return jsonify({"success": True, "coach": coach.to_dict()})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @api_login_required
    def me():
        try:
            coach = container.auth_service.get_session_coach(session["coach_id"])
        except AuthenticationError:
            session.clear()
            return error_response("Unauthorized", 401)
        return jsonify({"coach": coach.to_dict()})
