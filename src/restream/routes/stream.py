"""HTTP routes that drive the live relay."""
from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, redirect

from ..engine import RelayController
from ..exceptions import RelayError
from ..services.relay import get_relay_controller

STREAM_BLUEPRINT = Blueprint("stream", __name__, url_prefix="/api/stream")


def _controller() -> RelayController:
    return get_relay_controller(current_app)


@STREAM_BLUEPRINT.get("/<source_id>/playlist")
@STREAM_BLUEPRINT.get("/<source_id>/playlist.m3u8")
def playlist(source_id: str):
    try:
        target = _controller().request_playback(source_id)
    except RelayError as exc:
        status = exc.http_status
        if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            current_app.logger.error("Playback request for %s failed: %s", source_id, exc)
        return jsonify({"error": str(exc)}), status
    return redirect(target.manifest_url, code=HTTPStatus.FOUND)


@STREAM_BLUEPRINT.get("/status")
def status():
    payload = _controller().status().to_payload()
    return jsonify(payload), HTTPStatus.OK


@STREAM_BLUEPRINT.post("/stop")
def stop():
    stopped = _controller().stop_active()
    return jsonify({"stopped": stopped}), HTTPStatus.OK


__all__ = ["STREAM_BLUEPRINT"]
