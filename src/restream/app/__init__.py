"""Restream application factory."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from flask import Flask

from .bootstrap import (
    configure_media_routes,
    ensure_single_worker,
    ensure_storage_paths,
    init_logging,
    load_configuration,
)
from .extensions import (
    configure_cors,
    init_catalog_service,
    init_database,
    init_relay_controller,
    init_status_broadcaster,
    register_blueprints,
    register_teardown,
)


def create_app(config_overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """Create and configure the restream Flask application."""

    app = Flask(__name__)
    load_configuration(app, config_overrides)
    init_logging(app)

    ensure_single_worker()
    ensure_storage_paths(app)

    init_database(app)
    catalog = init_catalog_service(app)
    status_broadcaster = init_status_broadcaster(app)
    controller = init_relay_controller(app, catalog, status_broadcaster=status_broadcaster)

    register_blueprints(app)
    configure_media_routes(app)

    configure_cors(app, app.config.get("RESTREAM_CORS_ORIGIN", "*"))
    register_teardown(app, controller, status_broadcaster)

    return app


__all__ = ["create_app"]
