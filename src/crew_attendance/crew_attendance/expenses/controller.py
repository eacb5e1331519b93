from __future__ import annotations

from flask import Flask

from ..common.http import current_crew_id, json_body, json_error, login_required, ok
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    expenses = container.expense_service

    @app.route("/api/expenses", methods=["GET"], endpoint="api_expenses")
    @login_required
    def api_expenses():
        try:
            items = expenses.list(current_crew_id())
        except DomainError as e:
            return json_error(e)
        return ok(expenses=[x.to_dict() for x in items])

    @app.route("/api/expenses", methods=["POST"], endpoint="api_expense_submit")
    @login_required
    def api_expense_submit():
        data = json_body()
        try:
            result = expenses.submit(
                current_crew_id(),
                amount=data.get("amount"),
                description=data.get("description"),
                category=data.get("category") or "vitto",
                event_id=data.get("event_id") or None,
                warehouse_shift_id=data.get("warehouse_shift_id") or None,
                expense_date=data.get("expense_date"),
                location=data.get("location"),
                notes=data.get("notes"),
                payment_method=data.get("payment_method"),
            )
        except DomainError as e:
            return json_error(e)
        if result.queued_offline:
            message = "Nota spesa salvata offline - Verrà inviata quando torni online"
        else:
            message = "Nota spesa inviata con successo!"
        return ok(message=message, **result.to_dict())
