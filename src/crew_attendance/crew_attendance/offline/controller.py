from __future__ import annotations

from flask import Flask

from ..common.http import flag, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    queue = container.offline_queue

    def _status():
        return ok(is_online=queue.is_online, is_syncing=queue.is_syncing, pending_count=queue.pending_count)

    @app.route("/api/offline", methods=["GET"], endpoint="api_offline_status")
    @login_required
    def api_offline_status():
        return _status()

    @app.route("/api/offline/connectivity", methods=["POST"], endpoint="api_offline_connectivity")
    @login_required
    def api_offline_connectivity():
        # Going back online replays the queue.
        queue.set_online(flag(json_body(), "online"))
        return _status()

    @app.route("/api/offline/sync", methods=["POST"], endpoint="api_offline_sync")
    @login_required
    def api_offline_sync():
        applied = queue.replay()
        return ok(applied=applied, pending_count=queue.pending_count)
