"""Service health endpoint."""
from __future__ import annotations

from datetime import datetime, timezone
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify

from ..services.relay import get_relay_controller

HEALTH_BLUEPRINT = Blueprint("health", __name__)


@HEALTH_BLUEPRINT.get("/health")
def health_endpoint():
    status = get_relay_controller(current_app).status()
    payload = {
        "status": "ok",
        "service": "restream",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "relay": {"state": status.state, "activeSourceId": status.source_id},
    }
    return jsonify(payload), HTTPStatus.OK


__all__ = ["HEALTH_BLUEPRINT"]
