from __future__ import annotations

from flask import Flask, request

from ..common.http import current_crew_id, flag, json_body, json_error, login_required, ok
from ..container import Container
from ..core.exceptions import DomainError
from ..location.service import reported_location
from .service import entry_to_dict


def register(app: Flask, container: Container) -> None:
    timesheets = container.timesheet_service

    @app.route("/api/events/today", methods=["GET"], endpoint="api_events_today")
    @login_required
    def api_events_today():
        try:
            days = timesheets.events_today(current_crew_id())
        except DomainError as e:
            return json_error(e)
        return ok(events=[d.to_dict() for d in days])

    @app.route("/api/events/<event_id>/checkin", methods=["POST"], endpoint="api_event_checkin")
    @login_required
    def api_event_checkin(event_id: str):
        data = json_body()
        location, gps_error = reported_location(data, container.geocoder)
        try:
            result = timesheets.check_in(
                current_crew_id(),
                event_id,
                location=location,
                force=flag(data, "force"),
                gps_error=gps_error,
                notes=data.get("notes"),
            )
        except DomainError as e:
            return json_error(e)
        return ok(message=f"Check-in evento alle {result['start_time']}", **result)

    @app.route("/api/timesheets/<entry_id>/checkout", methods=["POST"], endpoint="api_event_checkout")
    @login_required
    def api_event_checkout(entry_id: str):
        try:
            result = timesheets.check_out(current_crew_id(), entry_id)
        except DomainError as e:
            return json_error(e)
        return ok(message=f"Check-out evento alle {result['end_time']}", **result)

    @app.route("/api/timesheets", methods=["GET"], endpoint="api_timesheets")
    @login_required
    def api_timesheets():
        try:
            entries = timesheets.list_entries(
                current_crew_id(),
                start_date=request.args.get("start") or None,
                end_date=request.args.get("end") or None,
            )
        except DomainError as e:
            return json_error(e)
        return ok(entries=[entry_to_dict(e) for e in entries])

    @app.route("/api/timesheets", methods=["POST"], endpoint="api_timesheet_create")
    @login_required
    def api_timesheet_create():
        data = json_body()
        location, _ = reported_location(data, container.geocoder)
        try:
            entry = timesheets.create(current_crew_id(), data, location=location)
        except DomainError as e:
            return json_error(e)
        return ok(message="Voce creata", entry=entry_to_dict(entry)), 201

    @app.route("/api/timesheets/<entry_id>", methods=["PUT"], endpoint="api_timesheet_update")
    @login_required
    def api_timesheet_update(entry_id: str):
        try:
            timesheets.update(current_crew_id(), entry_id, json_body())
        except DomainError as e:
            return json_error(e)
        return ok(message="Voce aggiornata")

    @app.route("/api/timesheets/<entry_id>", methods=["DELETE"], endpoint="api_timesheet_delete")
    @login_required
    def api_timesheet_delete(entry_id: str):
        try:
            timesheets.delete(current_crew_id(), entry_id)
        except DomainError as e:
            return json_error(e)
        return ok(message="Voce eliminata")

    @app.route("/api/timesheets/<entry_id>/submit", methods=["POST"], endpoint="api_timesheet_submit")
    @login_required
    def api_timesheet_submit(entry_id: str):
        try:
            timesheets.submit(current_crew_id(), entry_id)
        except DomainError as e:
            return json_error(e)
        return ok(message="Voce inviata")

    @app.route("/api/timesheets/<entry_id>/payment-status", methods=["POST"], endpoint="api_timesheet_payment")
    @login_required
    def api_timesheet_payment(entry_id: str):
        try:
            status = timesheets.update_payment_status(current_crew_id(), entry_id, json_body().get("status", ""))
        except DomainError as e:
            return json_error(e)
        return ok(message="Stato pagamento aggiornato", payment_status=status.value)

    @app.route("/api/events/<event_id>/rectify", methods=["POST"], endpoint="api_event_rectify")
    @login_required
    def api_event_rectify(event_id: str):
        data = json_body()
        try:
            entry_id = timesheets.rectify(
                current_crew_id(),
                event_id=event_id,
                start_time=data.get("start_time", ""),
                end_time=data.get("end_time", ""),
                break_minutes=data.get("break_minutes") or 0,
                note=data.get("note", ""),
                entry_id=data.get("entry_id") or None,
                employee_notes=data.get("employee_notes"),
            )
        except DomainError as e:
            return json_error(e)
        return ok(message="Orari evento rettificati", entry_id=entry_id)
