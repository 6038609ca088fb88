"""Bootstrap helpers for the restream Flask application."""
from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from flask import Flask, Response, abort, send_from_directory

from ..config import build_default_config
from ..logging_config import configure_logging
from ..utils import coerce_int, ensure_leading_slash, strip_trailing_slash


def init_logging(app: Flask) -> None:
    """Configure root logging from the app's ``RESTREAM_LOG_*`` settings."""

    configure_logging(
        "restream",
        log_dir=app.config.get("RESTREAM_LOG_DIR"),
        level=app.config.get("RESTREAM_LOG_LEVEL"),
        keep_files=coerce_int(app.config.get("RESTREAM_LOG_KEEP_FILES"), 10),
    )


def load_configuration(app: Flask, overrides: Optional[Mapping[str, Any]] = None) -> None:
    """Populate the default configuration values on the Flask app."""

    app.config.from_mapping(build_default_config())
    if overrides:
        app.config.from_mapping(overrides)


def ensure_single_worker() -> None:
    """Validate that the service is running with a single worker process."""

    worker_count = 1
    raw_worker_count = (
        os.getenv("RESTREAM_WORKER_PROCESSES")
        or os.getenv("GUNICORN_WORKERS")
        or os.getenv("WEB_CONCURRENCY")
    )
    if raw_worker_count:
        try:
            worker_count = max(1, int(raw_worker_count))
        except ValueError:
            worker_count = 1
    if worker_count != 1:
        raise RuntimeError(
            "The relay keeps its session in process memory and requires a single worker. "
            "Set GUNICORN_WORKERS=1 (or WEB_CONCURRENCY=1) before launching. "
            f"Detected {worker_count}."
        )


def ensure_storage_paths(app: Flask) -> Path:
    output_root = Path(app.config["RESTREAM_OUTPUT_DIR"]).expanduser().resolve()
    output_root.mkdir(parents=True, exist_ok=True)
    app.config["RESTREAM_OUTPUT_DIR"] = str(output_root)
    return output_root


def configure_media_routes(app: Flask) -> None:
    """Serve relay manifests and segments from the output root."""

    output_root = Path(app.config["RESTREAM_OUTPUT_DIR"]).expanduser().resolve()
    prefix = strip_trailing_slash(ensure_leading_slash(app.config.get("RESTREAM_HLS_PREFIX", "/hls")))
    cache_max_age = int(app.config.get("RESTREAM_HLS_CACHE_MAX_AGE", 0) or 0)
    cache_extensions = _normalise_cache_extensions(app.config.get("RESTREAM_HLS_CACHE_EXTENSIONS"))

    def _resolve_media_path(fragment: str) -> Path:
        target = (output_root / fragment).expanduser().resolve()
        try:
            target.relative_to(output_root)
        except ValueError:
            abort(400, description="Invalid media path")
        return target

    def _should_cache(filename: str) -> bool:
        if "." not in filename:
            return False
        extension = filename.rsplit(".", 1)[-1].lower()
        if extension == "m3u8":
            return False
        return extension in cache_extensions

    def serve_media(requested_path: str) -> Response:
        target = _resolve_media_path(requested_path)
        if target.is_dir():
            abort(403, description="Directories are not browsable")
        if not target.is_file():
            abort(404)
        relative_path = target.relative_to(output_root).as_posix()
        should_cache = _should_cache(relative_path)
        response = send_from_directory(
            str(output_root),
            relative_path,
            conditional=True,
            max_age=cache_max_age if should_cache and cache_max_age > 0 else None,
        )
        if relative_path.endswith(".m3u8"):
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Content-Type"] = "application/vnd.apple.mpegurl"
        elif should_cache:
            if cache_max_age > 0:
                response.headers["Cache-Control"] = f"public, max-age={cache_max_age}"
            else:
                response.headers.setdefault("Cache-Control", "no-cache")
            if response.last_modified is None:
                response.last_modified = datetime.fromtimestamp(target.stat().st_mtime, tz=timezone.utc)
        return response

    app.add_url_rule(
        f"{prefix}/<path:requested_path>",
        endpoint="relay_media",
        view_func=serve_media,
        methods=["GET", "HEAD"],
    )


def _normalise_cache_extensions(raw: Optional[object]) -> set[str]:
    if isinstance(raw, str):
        return {
            ext.strip().lower().lstrip(".")
            for ext in raw.split(",")
            if ext.strip()
        }
    if isinstance(raw, Iterable):
        return {
            str(ext).strip().lower().lstrip(".")
            for ext in raw
            if str(ext).strip()
        }
    return {"ts"}


__all__ = [
    "configure_media_routes",
    "ensure_single_worker",
    "ensure_storage_paths",
    "init_logging",
    "load_configuration",
]
