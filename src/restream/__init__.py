"""Single-session HLS relay for IPTV catalogs."""
from __future__ import annotations

from .engine import PlaybackRedirect, RelayController, RelayStatus
from .exceptions import (
    InvalidRequest,
    ProcessRuntimeError,
    ProcessStartFailure,
    ReadinessTimeout,
    RelayError,
    SourceNotFound,
)

__all__ = [
    "PlaybackRedirect",
    "RelayController",
    "RelayStatus",
    "RelayError",
    "InvalidRequest",
    "SourceNotFound",
    "ProcessStartFailure",
    "ProcessRuntimeError",
    "ReadinessTimeout",
]
