"""Construction and lookup of the process-wide relay controller."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from flask import Flask

from ..engine import (
    FFmpegHlsRelay,
    ManifestReadinessPoller,
    OutputReclaimer,
    RelayController,
    RelayStatusBroadcaster,
    SourceCatalog,
    StopStrategy,
    TranscoderSupervisor,
    settings_from_config,
)

EXTENSION_KEY = "relay_controller"


def build_relay_controller(
    config: Mapping[str, Any],
    catalog: SourceCatalog,
    *,
    status_broadcaster: Optional[RelayStatusBroadcaster] = None,
) -> RelayController:
    """Wire the relay collaborators from a configuration mapping."""

    settings = settings_from_config(config)
    supervisor = TranscoderSupervisor(
        FFmpegHlsRelay(settings),
        StopStrategy(graceful_timeout=settings.stop_grace_seconds),
        max_runtime_seconds=settings.max_runtime_seconds,
    )
    poller = ManifestReadinessPoller(
        attempts=settings.readiness_attempts,
        interval=settings.readiness_interval,
    )
    return RelayController(
        settings,
        catalog,
        supervisor,
        poller,
        OutputReclaimer(settings.reclaim_grace_seconds),
        status_broadcaster=status_broadcaster,
    )


def get_relay_controller(app: Flask) -> RelayController:
    controller = app.extensions.get(EXTENSION_KEY)
    if controller is None:
        raise RuntimeError("Relay controller has not been initialised")
    return controller


__all__ = ["EXTENSION_KEY", "build_relay_controller", "get_relay_controller"]
