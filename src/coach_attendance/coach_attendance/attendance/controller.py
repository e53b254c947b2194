from __future__ import annotations

import csv
import io
import logging

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import now_local
from ..common.validators import decode_image_data_url, require_status, require_uuid
from ..common.web import api_login_required, error_response
from ..container import Container
from ..core.exceptions import AuthenticationError, BusinessError, ValidationError
from ..reports.service import REPORT_FIELDS

logger = logging.getLogger(__name__)


def _parse_bulk_request(data) -> tuple[str, dict, bytes | None]:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    session_id = require_uuid(data.get("sessionId"), "session ID")

    attendance = data.get("attendance")
    if not isinstance(attendance, dict) or not attendance:
        raise ValidationError("At least one player attendance must be provided")

    parsed = {}
    for player_id, status in attendance.items():
        parsed[require_uuid(player_id, "player ID")] = require_status(status)

    photo = data.get("photo")
    photo_bytes = decode_image_data_url(photo) if photo else None
    return session_id, parsed, photo_bytes


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["POST"], endpoint="record_attendance")
    @api_login_required
    def record_attendance():
        try:
            session_id, attendance, photo = _parse_bulk_request(request.get_json(silent=True))
            result = container.attendance_service.record_bulk_attendance(session_id, attendance, photo)
        except ValidationError as e:
            return error_response("Invalid input data", 400, details=str(e))
        except BusinessError as e:
            return error_response(str(e), 422)
        except Exception:
            logger.exception("attendance recording error")
            return error_response("Internal server error", 500)

        return jsonify(
            {
                "success": True,
                "recordedCount": result.success_count,
                "timestamp": result.timestamp.isoformat(),
                "errors": [e.to_dict() for e in result.errors],
            }
        )

    @app.route("/api/sessions/<session_id>/attendance", methods=["GET"], endpoint="session_attendance")
    @api_login_required
    def session_attendance(session_id: str):
        try:
            records = container.attendance_service.get_session_attendance(session_id)
        except ValidationError as e:
            return error_response("Invalid input data", 400, details=str(e))
        return jsonify({"sessionId": session_id, "records": [r.to_dict() for r in records]})

    @app.route("/api/players/<player_id>/complimentary", methods=["GET"], endpoint="player_complimentary")
    @api_login_required
    def player_complimentary(player_id: str):
        today = now_local().date()
        try:
            month = int(request.args.get("month") or today.month)
            year = int(request.args.get("year") or today.year)
            usage = container.attendance_service.get_player_monthly_stats(player_id, month, year)
        except ValueError:
            return error_response("Invalid input data", 400, details="month/year must be integers")
        except ValidationError as e:
            return error_response("Invalid input data", 400, details=str(e))
        if container.players_repo.get_by_id(usage.player_id) is None:
            return error_response("Player not found", 404)
        return jsonify(usage.to_dict())

    @app.route("/api/attendance/export", methods=["GET"], endpoint="export_attendance")
    @api_login_required
    def export_attendance():
        try:
            coach = container.auth_service.get_session_coach(session["coach_id"])
            data = container.export_service.build_player_report(coach, report_date=now_local().date())
        except AuthenticationError:
            return error_response("Coach not found", 404)
        except Exception:
            logger.exception("export error")
            return error_response("Failed to export data", 500)

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDS, lineterminator="\n")
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)
        out.write("\n")
        for line in data.summary:
            out.write(line + "\n")

        return app.response_class(
            out.getvalue().encode("utf-8"),
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{data.filename}"'},
        )
