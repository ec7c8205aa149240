"""
Sync Control Surface - Flask Backend

Provides API endpoints for driving and monitoring catalog syncs:
- Server-sent event stream of run progress and logs
- Run status snapshot
- Start / stop / reset of the single run slot
- Published product count
- Health probe
"""

import json
import logging
from datetime import datetime, timezone

from flask import Flask, Response, jsonify, request, stream_with_context
from flask_cors import CORS

from ..models import RunMode
from ..store import BACKENDS
from ..sync import RunCoordinator

logger = logging.getLogger(__name__)

HEARTBEAT_SECONDS = 15


def _sse(event: dict) -> str:
    return f"data: {json.dumps(event, default=str)}\n\n"


def create_app(coordinator: RunCoordinator, heartbeat_seconds: float = HEARTBEAT_SECONDS) -> Flask:
    """
    Build the Flask app around a run coordinator.

    Args:
        coordinator: Owner of the run slot
        heartbeat_seconds: Idle interval before a keep-alive comment is sent

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.config["COORDINATOR"] = coordinator
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    @app.get("/api/events")
    def events():
        """Stream `init`, then `log` and `progress` events (SSE)."""
        subscription = coordinator.subscribe()

        def generate():
            try:
                while True:
                    event = subscription.get(timeout=heartbeat_seconds)
                    if event is None:
                        yield ": heartbeat\n\n"
                        continue
                    yield _sse(event)
            finally:
                subscription.close()

        return Response(
            stream_with_context(generate()),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.get("/api/status")
    def status():
        return jsonify(coordinator.status())

    @app.post("/api/sync")
    def start_sync():
        payload = request.get_json(silent=True) or {}
        mode = payload.get("mode") or RunMode.FULL.value
        method = payload.get("method") or coordinator.settings.default_method

        if mode not in {m.value for m in RunMode}:
            return jsonify({"error": f"Unknown mode: {mode}"}), 400
        if method not in BACKENDS:
            return jsonify({"error": f"Unknown method: {method}"}), 400

        if not coordinator.start(mode, method):
            return jsonify({"error": "Sync already running"}), 400

        return jsonify({"status": "started", "mode": mode, "method": method})

    @app.post("/api/sync/stop")
    def stop_sync():
        if not coordinator.request_stop():
            return jsonify({"error": "No sync running"}), 400
        return jsonify({"status": "stopping"})

    @app.post("/api/sync/reset")
    def reset_sync():
        if not coordinator.reset():
            return jsonify({"error": "Sync already running"}), 400
        return jsonify({"status": "idle"})

    @app.get("/api/products/count")
    def products_count():
        method = request.args.get("method") or coordinator.settings.default_method
        if method not in BACKENDS:
            return jsonify({"count": None, "error": f"Unknown method: {method}"})
        try:
            return jsonify({"count": coordinator.count_published(method)})
        except Exception as e:
            logger.warning("Product count failed: %s", e)
            return jsonify({"count": None, "error": str(e)})

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})

    return app
