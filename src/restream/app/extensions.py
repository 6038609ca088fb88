"""Extension wiring for the restream Flask application."""
from __future__ import annotations

import atexit
from typing import Optional

from flask import Flask, Response, request

from ..engine import RelayController, RelayStatusBroadcaster
from ..services.catalog import CatalogService
from ..services.relay import EXTENSION_KEY, build_relay_controller
from ..providers import db
from ..shutdown import ShutdownCoordinator
from ..utils import coerce_float

SHUTDOWN_KEY = "shutdown_coordinator"


def init_database(app: Flask) -> None:
    """Initialise SQLAlchemy bindings and create the catalog table."""

    db.init_app(app)
    if app.config.get("RESTREAM_CREATE_TABLES", True):
        from .. import models as _models  # noqa: F401

        with app.app_context():
            db.create_all()


def init_catalog_service(app: Flask) -> CatalogService:
    service = CatalogService()
    app.extensions["catalog_service"] = service
    return service


def init_status_broadcaster(app: Flask) -> Optional[RelayStatusBroadcaster]:
    redis_url = app.config.get("RESTREAM_STATUS_REDIS_URL")
    if not redis_url:
        app.logger.info("RESTREAM_STATUS_REDIS_URL not set; relay status broadcasting disabled")
        return None
    status_broadcaster = RelayStatusBroadcaster(
        redis_url=redis_url,
        prefix=app.config.get("RESTREAM_STATUS_PREFIX", "restream"),
        key=app.config.get("RESTREAM_STATUS_KEY", "status"),
        channel=app.config.get("RESTREAM_STATUS_CHANNEL"),
        ttl_seconds=int(app.config.get("RESTREAM_STATUS_TTL_SECONDS", 30) or 0),
    )
    app.extensions["relay_status_broadcaster"] = status_broadcaster
    if not status_broadcaster.available:
        app.logger.warning(
            "Relay status broadcasting unavailable: %s", status_broadcaster.last_error
        )
    return status_broadcaster


def init_relay_controller(
    app: Flask,
    catalog: CatalogService,
    *,
    status_broadcaster: Optional[RelayStatusBroadcaster] = None,
) -> RelayController:
    controller = build_relay_controller(app.config, catalog, status_broadcaster=status_broadcaster)
    app.extensions[EXTENSION_KEY] = controller
    return controller


def register_blueprints(app: Flask) -> None:
    """Register HTTP blueprints for the API surface."""

    from ..routes import API_BLUEPRINTS

    for blueprint in API_BLUEPRINTS:
        app.register_blueprint(blueprint)


def register_teardown(
    app: Flask,
    controller: RelayController,
    status_broadcaster: Optional[RelayStatusBroadcaster],
) -> ShutdownCoordinator:
    """Tear the relay down and release the status client at interpreter exit.

    ``atexit`` runs hooks last-in first-out, so the relay shutdown (which
    publishes a final status) is registered after the client close.
    """

    if status_broadcaster is not None:
        atexit.register(status_broadcaster.close)
    coordinator = ShutdownCoordinator(
        controller,
        exit_delay=coerce_float(app.config.get("RESTREAM_SHUTDOWN_DELAY"), 1.0),
    )
    atexit.register(coordinator.at_exit)
    app.extensions[SHUTDOWN_KEY] = coordinator
    return coordinator


def configure_cors(app: Flask, cors_origin: Optional[str]) -> None:
    allowed_default = cors_origin or "*"

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        origin = request.headers.get("Origin")
        allowed_origin = allowed_default
        if allowed_default == "*" and origin:
            allowed_origin = origin
        response.headers["Access-Control-Allow-Origin"] = allowed_origin
        response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type, Range")
        response.headers.setdefault("Access-Control-Allow-Methods", "GET,HEAD,POST,OPTIONS")
        if allowed_origin != "*":
            response.headers.setdefault("Access-Control-Allow-Credentials", "true")
        if origin:
            response.headers.add("Vary", "Origin")
        return response


__all__ = [
    "SHUTDOWN_KEY",
    "configure_cors",
    "init_catalog_service",
    "init_database",
    "init_relay_controller",
    "init_status_broadcaster",
    "register_blueprints",
    "register_teardown",
]
