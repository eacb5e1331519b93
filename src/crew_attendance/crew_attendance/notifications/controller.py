from __future__ import annotations

from flask import Flask

from ..common.http import current_crew_id, json_error, login_required, ok
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    notifications = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="api_notifications")
    @login_required
    def api_notifications():
        try:
            items = notifications.list(current_crew_id())
        except DomainError as e:
            return json_error(e)
        return ok(
            notifications=[n.to_dict() for n in items],
            unread=sum(1 for n in items if not n.is_read),
        )

    @app.route("/api/notifications/<notification_id>/read", methods=["POST"], endpoint="api_notification_read")
    @login_required
    def api_notification_read(notification_id: str):
        try:
            notifications.mark_read(current_crew_id(), notification_id)
        except DomainError as e:
            return json_error(e)
        return ok()

    @app.route("/api/notifications/<notification_id>", methods=["DELETE"], endpoint="api_notification_delete")
    @login_required
    def api_notification_delete(notification_id: str):
        try:
            notifications.dismiss(current_crew_id(), notification_id)
        except DomainError as e:
            return json_error(e)
        return ok()
