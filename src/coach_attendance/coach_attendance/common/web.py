from __future__ import annotations

from functools import wraps

from flask import jsonify, session


def api_login_required(view):
    """Reject callers without a coach in the session cookie (401, JSON)."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "coach_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


def error_response(message: str, status: int, *, details=None):
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return jsonify(body), status
