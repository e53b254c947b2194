from __future__ import annotations

import logging

from flask import Flask, jsonify, session

from ..common.datetime_utils import now_local
from ..common.web import api_login_required, error_response
from ..container import Container
from ..core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/dashboard", methods=["GET"], endpoint="dashboard")
    @api_login_required
    def dashboard():
        try:
            coach = container.auth_service.get_session_coach(session["coach_id"])
            data = container.dashboard_service.build(coach, today=now_local().date())
        except AuthenticationError:
            return error_response("Coach not found", 404)
        except Exception:
            logger.exception("dashboard failed")
            return error_response("Internal server error", 500)
        return jsonify(data.to_dict())
