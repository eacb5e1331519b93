from __future__ import annotations

from functools import wraps

from flask import jsonify, request, session

from ..core.exceptions import (
    AuthenticationError,
    CheckInInProgressError,
    ConnectivityError,
    DomainError,
    DuplicateCheckInError,
    NotFoundError,
)

_STATUS = (
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (DuplicateCheckInError, 409),
    (CheckInInProgressError, 409),
    (ConnectivityError, 503),
)


def current_crew_id() -> str:
    return str(session["crew_id"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "crew_id" not in session:
            return jsonify({"success": False, "message": "Effettua il login per continuare"}), 401
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def ok(**payload):
    return jsonify({"success": True, **payload})


def json_error(error: DomainError):
    status = next((code for kind, code in _STATUS if isinstance(error, kind)), 400)
    return jsonify({"success": False, "message": str(error)}), status


def flag(data: dict, key: str) -> bool:
    value = data.get(key)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
