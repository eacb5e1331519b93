from __future__ import annotations

import logging

from flask import Flask, request, send_file

from ..common.http import current_crew_id, flag, json_body, json_error, login_required, ok
from ..container import Container
from ..core.exceptions import CheckInInProgressError, DomainError, NotFoundError
from ..location.service import reported_location
from ..qr.codes import warehouse_code_png
from ..qr.scanner import decode_image

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    def _gps(data: dict):
        return reported_location(data, container.geocoder)

    # -- shifts and check-in ----------------------------------------------

    @app.route("/api/shifts", methods=["GET"], endpoint="api_shifts")
    @login_required
    def api_shifts():
        try:
            options = attendance.list_shifts(current_crew_id())
        except DomainError as e:
            return json_error(e)
        return ok(shifts=[o.to_dict() for o in options])

    @app.route("/api/checkin", methods=["POST"], endpoint="api_checkin")
    @login_required
    def api_checkin():
        data = json_body()
        crew_id = current_crew_id()
        gate = container.scan_gates.for_crew(crew_id)
        location, gps_error = _gps(data)
        try:
            result = attendance.check_in(
                crew_id,
                shift_id=str(data.get("shift_id") or ""),
                code=data.get("code", ""),
                location=location,
                force=flag(data, "force"),
                gps_error=gps_error,
                company_meal=flag(data, "company_meal"),
                meal_voucher=flag(data, "meal_voucher"),
            )
        except CheckInInProgressError as e:
            # the request in flight owns the gate
            return json_error(e)
        except DomainError as e:
            gate.finish(success=False)
            return json_error(e)

        gate.finish(success=True)
        if result.queued_offline:
            message = "Check-in salvato offline: verrà sincronizzato appena torna la connessione"
        elif result.location_alert:
            message = f"Check-in registrato a {result.distance_from_warehouse} m dal magazzino"
        else:
            message = f"Check-in effettuato alle {result.check_in_time}"
        return ok(message=message, checkin=result.to_dict())

    # -- QR ---------------------------------------------------------------

    @app.route("/api/qr/start", methods=["POST"], endpoint="api_qr_start")
    @login_required
    def api_qr_start():
        gate = container.scan_gates.for_crew(current_crew_id())
        gate.start()
        return ok(state=gate.state.value)

    @app.route("/api/qr/stop", methods=["POST"], endpoint="api_qr_stop")
    @login_required
    def api_qr_stop():
        gate = container.scan_gates.for_crew(current_crew_id())
        gate.stop()
        return ok(state=gate.state.value)

    @app.route("/api/qr/scan", methods=["POST"], endpoint="api_qr_scan")
    @login_required
    def api_qr_scan():
        """Accept a decoded code (JSON) or a camera frame (multipart ``image``)."""
        gate = container.scan_gates.for_crew(current_crew_id())
        try:
            if "image" in request.files:
                code = decode_image(request.files["image"].stream)
            else:
                code = (json_body().get("code") or "").strip()
        except DomainError as e:
            return json_error(e)

        if not gate.offer(code):
            return ok(accepted=False, state=gate.state.value)
        try:
            warehouse = attendance.match_warehouse(code)
        except DomainError as e:
            gate.finish(success=False)
            return json_error(e)
        return ok(accepted=True, code=code, warehouse={"id": warehouse.id, "name": warehouse.name})

    @app.route("/api/warehouses/<warehouse_id>/qr.png", methods=["GET"], endpoint="api_warehouse_qr")
    @login_required
    def api_warehouse_qr(warehouse_id: str):
        try:
            warehouse = container.warehouses_repo.get_by_id(warehouse_id)
            if warehouse is None:
                raise NotFoundError("Magazzino non trovato")
            buf = warehouse_code_png(warehouse)
        except DomainError as e:
            return json_error(e)
        return send_file(buf, mimetype="image/png")

    # -- sessions and check-out -------------------------------------------

    @app.route("/api/sessions", methods=["GET"], endpoint="api_sessions")
    @login_required
    def api_sessions():
        sessions = container.sessions.for_crew(current_crew_id())
        try:
            if flag(request.args, "reload") or sessions.current is None:
                sessions.load_active_session()
        except DomainError as e:
            return json_error(e)
        sessions.ticker.tick()
        return ok(
            current=sessions.current.to_dict() if sessions.current else None,
            sessions=[s.to_dict() for s in sessions.active_sessions],
            elapsed_time=sessions.ticker.elapsed_time,
            elapsed_times=sessions.ticker.elapsed_times,
        )

    @app.route("/api/sessions/<session_id>/select", methods=["POST"], endpoint="api_session_select")
    @login_required
    def api_session_select(session_id: str):
        session = container.sessions.for_crew(current_crew_id()).select(session_id)
        if session is None:
            return json_error(NotFoundError("Sessione non trovata"))
        return ok(current=session.to_dict())

    @app.route("/api/checkout", methods=["POST"], endpoint="api_checkout")
    @login_required
    def api_checkout():
        data = json_body()
        location, _ = _gps(data)
        try:
            at = attendance.check_out(
                current_crew_id(),
                session_id=data.get("session_id"),
                location=location,
                notes=data.get("notes"),
            )
        except DomainError as e:
            return json_error(e)
        return ok(message=f"Check-out effettuato alle {at}", check_out_time=at)

    # -- breaks and notes -------------------------------------------------

    @app.route("/api/break", methods=["GET"], endpoint="api_break_status")
    @login_required
    def api_break_status():
        try:
            return ok(**attendance.break_status(current_crew_id()))
        except DomainError as e:
            return json_error(e)

    @app.route("/api/break/start", methods=["POST"], endpoint="api_break_start")
    @login_required
    def api_break_start():
        data = json_body()
        location, gps_error = _gps(data)
        try:
            start = attendance.start_break(current_crew_id(), location=location, force=flag(data, "force"), gps_error=gps_error)
        except DomainError as e:
            return json_error(e)
        return ok(message=f"Pausa iniziata alle {start}", start=start)

    @app.route("/api/break/end", methods=["POST"], endpoint="api_break_end")
    @login_required
    def api_break_end():
        data = json_body()
        location, gps_error = _gps(data)
        try:
            result = attendance.end_break(current_crew_id(), location=location, force=flag(data, "force"), gps_error=gps_error)
        except DomainError as e:
            return json_error(e)
        return ok(message=f"Pausa terminata ({result['minutes']} minuti)", **result)

    @app.route("/api/break/late", methods=["GET"], endpoint="api_late_break")
    @login_required
    def api_late_break():
        try:
            record = attendance.pending_late_break(current_crew_id())
        except DomainError as e:
            return json_error(e)
        if record is None:
            return ok(pending=None)
        return ok(
            pending={
                "record_id": record.id,
                "date": record.date,
                "check_in_time": record.check_in_time,
                "check_out_time": record.check_out_time,
                "break_minutes": record.break_minutes,
            }
        )

    @app.route("/api/break/late", methods=["POST"], endpoint="api_late_break_register")
    @login_required
    def api_late_break_register():
        data = json_body()
        try:
            minutes = attendance.register_late_break(
                current_crew_id(),
                str(data.get("record_id") or ""),
                data.get("start", ""),
                data.get("end", ""),
            )
        except DomainError as e:
            return json_error(e)
        return ok(message=f"Pausa registrata ({minutes} minuti)", minutes=minutes)

    @app.route("/api/shift-notes", methods=["POST"], endpoint="api_shift_notes")
    @login_required
    def api_shift_notes():
        try:
            attendance.save_shift_notes(current_crew_id(), json_body().get("notes"))
        except DomainError as e:
            return json_error(e)
        return ok(message="Note salvate")

    # -- extra shifts -----------------------------------------------------

    @app.route("/api/extra/checkin", methods=["POST"], endpoint="api_extra_checkin")
    @login_required
    def api_extra_checkin():
        data = json_body()
        location, gps_error = _gps(data)
        try:
            result = attendance.start_extra_shift(
                current_crew_id(),
                location=location,
                force=flag(data, "force"),
                gps_error=gps_error,
                company_meal=flag(data, "company_meal"),
                meal_voucher=flag(data, "meal_voucher"),
                shift_notes=data.get("shift_notes"),
            )
        except DomainError as e:
            return json_error(e)
        return ok(message=f"Turno extra iniziato alle {result.check_in_time}", checkin=result.to_dict())

    @app.route("/api/extra/<record_id>/benefit", methods=["GET"], endpoint="api_extra_benefit")
    @login_required
    def api_extra_benefit(record_id: str):
        try:
            return ok(benefit=attendance.extra_shift_benefit(current_crew_id(), record_id))
        except DomainError as e:
            return json_error(e)

    @app.route("/api/auto-checkout", methods=["POST"], endpoint="api_auto_checkout")
    @login_required
    def api_auto_checkout():
        sessions = container.sessions.for_crew(current_crew_id())
        try:
            if sessions.current is None:
                sessions.load_active_session()
            closed = attendance.auto_checkout(sessions)
        except DomainError as e:
            return json_error(e)
        if closed:
            logger.info("Auto-checkout triggered by client for crew %s", sessions.crew_id)
        return ok(closed=closed)
