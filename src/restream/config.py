"""Configuration helpers for the restream service."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

from dotenv import find_dotenv, load_dotenv

from .utils import coerce_float, coerce_int, to_bool


def _ensure_dotenv_loaded() -> None:
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path, override=False)


_ensure_dotenv_loaded()

LOGGER = logging.getLogger(__name__)

DEFAULT_SEGMENT_SECONDS = 4
DEFAULT_PLAYLIST_SIZE = 5
DEFAULT_READINESS_ATTEMPTS = 20
DEFAULT_READINESS_INTERVAL = 1.0
DEFAULT_RECLAIM_GRACE_SECONDS = 3.0
DEFAULT_STOP_GRACE_SECONDS = 5.0
DEFAULT_PROCESS_MAX_RUNTIME = 432000.0
DEFAULT_SHUTDOWN_DELAY = 1.0


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return default
    trimmed = raw.strip()
    return trimmed or default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return coerce_int(raw, default)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return coerce_float(raw, default)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return to_bool(raw)


def resolve_output_root() -> Path:
    """Directory under which each relay session gets its own folder."""

    explicit = _env_str("RESTREAM_OUTPUT_DIR")
    if explicit:
        return Path(explicit).expanduser()
    return Path.cwd() / "stream_data"


def resolve_database_uri(output_root: Path) -> str:
    """Pick the catalog database URI.

    ``RESTREAM_DATABASE_URL`` wins, then ``DB_URL``; otherwise a PostgreSQL URL
    is assembled from the ``DB_*`` parts when all of them are present, and a
    SQLite file next to the stream output is used as the last resort.
    """

    explicit = _env_str("RESTREAM_DATABASE_URL") or _env_str("DB_URL")
    if explicit:
        return explicit

    parts = {
        key: _env_str(key)
        for key in ("DB_USER", "DB_PASSWORD", "DB_HOST", "DB_PORT", "DB_DATABASE")
    }
    if all(parts.values()):
        return "postgresql://{user}:{password}@{host}:{port}/{database}".format(
            user=quote(parts["DB_USER"] or "", safe=""),
            password=quote(parts["DB_PASSWORD"] or "", safe=""),
            host=parts["DB_HOST"],
            port=parts["DB_PORT"],
            database=parts["DB_DATABASE"],
        )
    if any(parts.values()):
        LOGGER.warning("Incomplete DB_* settings; falling back to SQLite catalog")

    sqlite_path = output_root.expanduser().resolve().parent / "restream.db"
    return f"sqlite:///{sqlite_path}"


def build_default_config() -> Dict[str, Any]:
    """Return the base configuration mapping for the restream service."""

    output_root = resolve_output_root()
    cfg: Dict[str, Any] = {
        "RESTREAM_OUTPUT_DIR": str(output_root),
        "RESTREAM_HLS_PREFIX": _env_str("RESTREAM_HLS_PREFIX", "/hls"),
        "RESTREAM_FFMPEG_BINARY": _env_str("RESTREAM_FFMPEG_BINARY", "ffmpeg"),
        "RESTREAM_FFMPEG_LOGLEVEL": _env_str("RESTREAM_FFMPEG_LOGLEVEL", "warning"),
        "RESTREAM_SEGMENT_SECONDS": max(1, _env_int("RESTREAM_SEGMENT_SECONDS", DEFAULT_SEGMENT_SECONDS)),
        "RESTREAM_PLAYLIST_SIZE": max(1, _env_int("RESTREAM_PLAYLIST_SIZE", DEFAULT_PLAYLIST_SIZE)),
        "RESTREAM_READINESS_ATTEMPTS": max(1, _env_int("RESTREAM_READINESS_ATTEMPTS", DEFAULT_READINESS_ATTEMPTS)),
        "RESTREAM_READINESS_INTERVAL": max(0.01, _env_float("RESTREAM_READINESS_INTERVAL", DEFAULT_READINESS_INTERVAL)),
        "RESTREAM_RECLAIM_GRACE_SECONDS": max(0.0, _env_float("RESTREAM_RECLAIM_GRACE_SECONDS", DEFAULT_RECLAIM_GRACE_SECONDS)),
        "RESTREAM_STOP_GRACE_SECONDS": max(0.0, _env_float("RESTREAM_STOP_GRACE_SECONDS", DEFAULT_STOP_GRACE_SECONDS)),
        "RESTREAM_PROCESS_MAX_RUNTIME": max(0.0, _env_float("RESTREAM_PROCESS_MAX_RUNTIME", DEFAULT_PROCESS_MAX_RUNTIME)),
        "RESTREAM_SHUTDOWN_DELAY": max(0.0, _env_float("RESTREAM_SHUTDOWN_DELAY", DEFAULT_SHUTDOWN_DELAY)),
        "RESTREAM_HLS_CACHE_MAX_AGE": max(0, _env_int("RESTREAM_HLS_CACHE_MAX_AGE", 2)),
        "RESTREAM_CORS_ORIGIN": _env_str("RESTREAM_CORS_ORIGIN", "*"),
        "RESTREAM_LOG_DIR": _env_str("RESTREAM_LOG_DIR", str(Path.cwd() / "logs")),
        "RESTREAM_LOG_LEVEL": _env_str("RESTREAM_LOG_LEVEL", "INFO"),
        "RESTREAM_LOG_KEEP_FILES": max(0, _env_int("RESTREAM_LOG_KEEP_FILES", 10)),
        "RESTREAM_STATUS_REDIS_URL": _env_str("RESTREAM_STATUS_REDIS_URL"),
        "RESTREAM_STATUS_PREFIX": _env_str("RESTREAM_STATUS_PREFIX", "restream"),
        "RESTREAM_STATUS_KEY": _env_str("RESTREAM_STATUS_KEY", "status"),
        "RESTREAM_STATUS_CHANNEL": _env_str("RESTREAM_STATUS_CHANNEL", "restream:relay:status"),
        "RESTREAM_STATUS_TTL_SECONDS": max(0, _env_int("RESTREAM_STATUS_TTL_SECONDS", 30)),
        "RESTREAM_CREATE_TABLES": _env_bool("RESTREAM_CREATE_TABLES", True),
        "SQLALCHEMY_DATABASE_URI": resolve_database_uri(output_root),
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
    }
    return cfg


__all__ = ["build_default_config", "resolve_database_uri", "resolve_output_root"]
