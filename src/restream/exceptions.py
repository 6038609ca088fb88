"""Custom exceptions raised by the relay."""
from __future__ import annotations

from http import HTTPStatus


class RelayError(RuntimeError):
    """Base error for the relay package."""

    http_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR


class InvalidRequest(RelayError):
    """Raised when a playback request carries a malformed source identifier."""

    http_status = HTTPStatus.BAD_REQUEST


class SourceNotFound(RelayError):
    """Raised when the catalog has no entry for the requested identifier."""

    http_status = HTTPStatus.NOT_FOUND


class ProcessStartFailure(RelayError):
    """Raised when the FFmpeg relay process cannot be launched."""


class ProcessRuntimeError(RelayError):
    """Raised when the FFmpeg relay exits with a failure or ends unexpectedly."""


class ReadinessTimeout(RelayError):
    """Raised when the HLS manifest does not appear within the polling window."""


__all__ = [
    "RelayError",
    "InvalidRequest",
    "SourceNotFound",
    "ProcessStartFailure",
    "ProcessRuntimeError",
    "ReadinessTimeout",
]
