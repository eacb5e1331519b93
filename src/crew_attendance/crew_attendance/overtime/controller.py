from __future__ import annotations

from flask import Flask

from ..common.http import current_crew_id, json_body, json_error, login_required, ok
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    overtime = container.overtime_service

    @app.route("/api/overtime", methods=["GET"], endpoint="api_overtime")
    @login_required
    def api_overtime():
        crew_id = current_crew_id()
        try:
            authorized = overtime.is_authorized(crew_id)
            history = overtime.history(crew_id)
            candidates = overtime.candidates(crew_id) if authorized else []
        except DomainError as e:
            return json_error(e)
        return ok(
            authorized=authorized,
            requests=[r.to_dict() for r in history],
            candidates=[c.to_dict() for c in candidates],
        )

    @app.route("/api/overtime", methods=["POST"], endpoint="api_overtime_request")
    @login_required
    def api_overtime_request():
        data = json_body()
        try:
            created = overtime.request(
                current_crew_id(),
                minutes=data.get("minutes"),
                note=data.get("note", ""),
                attendance_id=data.get("attendance_id") or None,
                timesheet_entry_id=data.get("timesheet_entry_id") or None,
            )
        except DomainError as e:
            return json_error(e)
        return ok(message="Richiesta di straordinario inviata", request=created.to_dict()), 201
