"""Engine layer for the single-session relay."""
from __future__ import annotations

from .config import HlsMuxingOptions, RelaySettings, settings_from_config
from .controller import RelayController, SourceCatalog
from .encoder import FFmpegHlsRelay
from .process import ExitKind, RelayExit, RelayProcess
from .readiness import ManifestReadinessPoller, ReadinessResult, ReadinessTask
from .reclaimer import OutputReclaimer
from .session import PlaybackRedirect, RelaySession, SessionState
from .status import RelayStatusBroadcaster
from .status_snapshot import RelayStatus
from .stop_strategy import StopStrategy
from .supervisor import SupervisorCallbacks, TranscoderSupervisor

__all__ = [
    "HlsMuxingOptions",
    "RelaySettings",
    "settings_from_config",
    "RelayController",
    "SourceCatalog",
    "FFmpegHlsRelay",
    "ExitKind",
    "RelayExit",
    "RelayProcess",
    "ManifestReadinessPoller",
    "ReadinessResult",
    "ReadinessTask",
    "OutputReclaimer",
    "PlaybackRedirect",
    "RelaySession",
    "SessionState",
    "RelayStatusBroadcaster",
    "RelayStatus",
    "StopStrategy",
    "SupervisorCallbacks",
    "TranscoderSupervisor",
]
