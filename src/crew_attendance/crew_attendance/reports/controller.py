from __future__ import annotations

from flask import Flask, request, send_file

from ..common.datetime_utils import now_local
from ..common.http import current_crew_id, flag, json_body, json_error, login_required, ok
from ..container import Container
from ..core.exceptions import DomainError, ValidationError
from .service import EXCEL_MIMETYPE


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    def _period() -> tuple[int, int]:
        today = now_local()
        try:
            year = int(request.args.get("year") or today.year)
            month = int(request.args.get("month") or today.month)
        except ValueError:
            raise ValidationError("Periodo non valido")
        return year, month

    @app.route("/api/reports/monthly", methods=["GET"], endpoint="api_monthly_report")
    @login_required
    def api_monthly_report():
        try:
            year, month = _period()
            report = reports.build_monthly_report(current_crew_id(), year=year, month=month)
        except DomainError as e:
            return json_error(e)
        return ok(year=year, month=month, rows=report.rows, events=report.events, totals=report.totals)

    @app.route("/api/reports/monthly.xlsx", methods=["GET"], endpoint="api_monthly_report_xlsx")
    @login_required
    def api_monthly_report_xlsx():
        try:
            year, month = _period()
            report = reports.build_monthly_report(current_crew_id(), year=year, month=month)
        except DomainError as e:
            return json_error(e)
        return send_file(
            reports.export_excel(report),
            mimetype=EXCEL_MIMETYPE,
            as_attachment=True,
            download_name=f"presenze_{year}_{month:02d}.xlsx",
        )

    @app.route("/api/attendance/<record_id>/rectify", methods=["POST"], endpoint="api_rectify_shift")
    @login_required
    def api_rectify_shift(record_id: str):
        data = json_body()
        try:
            hours = reports.rectify_shift(
                current_crew_id(),
                record_id,
                check_in=data.get("check_in", ""),
                check_out=data.get("check_out", ""),
                note=data.get("note", ""),
                lunch_start=data.get("lunch_start") or None,
                lunch_end=data.get("lunch_end") or None,
                dinner_start=data.get("dinner_start") or None,
                dinner_end=data.get("dinner_end") or None,
                extra=flag(data, "extra"),
            )
        except DomainError as e:
            return json_error(e)
        return ok(message="Turno rettificato", total_hours=hours)
