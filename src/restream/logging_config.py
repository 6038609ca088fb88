"""Root logger setup for the relay service and the ingest CLI."""
from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers capped at WARNING unless the service runs at DEBUG.
NOISY_LOGGERS = ("werkzeug", "sqlalchemy.engine", "urllib3")

_state: dict = {"log_file": None}


def resolve_level(level: Union[str, int, None]) -> int:
    """Map ``"debug"``/``"INFO"``/``10`` style values to a logging level."""

    if isinstance(level, int):
        return level
    if level:
        candidate = logging.getLevelName(str(level).strip().upper())
        if isinstance(candidate, int):
            return candidate
    return logging.INFO


def prune_old_logs(log_directory: Path, prefix: str, keep: int) -> List[Path]:
    """Delete all but the newest ``keep`` log files written under ``prefix``."""

    if keep <= 0:
        return []
    candidates = sorted(log_directory.glob(f"{prefix}-*.log"), key=lambda p: p.name, reverse=True)
    removed: List[Path] = []
    for stale in candidates[keep:]:
        try:
            stale.unlink()
        except OSError:
            continue
        removed.append(stale)
    return removed


def configure_logging(
    prefix: str = "restream",
    *,
    log_dir: Optional[Union[str, Path]] = None,
    level: Union[str, int, None] = None,
    keep_files: int = 10,
) -> Path:
    """Send root logging to a fresh timestamped file plus stdout.

    The first call wins; later calls (a second app in the same process, the
    ingest CLI creating its own app) return the file already in use.
    """

    current = _state["log_file"]
    if current is not None:
        return current

    log_directory = Path(log_dir).expanduser() if log_dir else Path.cwd() / "logs"
    log_directory.mkdir(parents=True, exist_ok=True)
    removed = prune_old_logs(log_directory, prefix, max(0, keep_files - 1))
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_file = log_directory / f"{prefix}-{timestamp}.log"

    root_level = resolve_level(level)
    root = logging.getLogger()
    root.setLevel(root_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in (
        logging.FileHandler(log_file, encoding="utf-8"),
        logging.StreamHandler(sys.stdout),
    ):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if root_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(root_level, logging.WARNING))

    _state["log_file"] = log_file
    root.info("Logging to %s at %s", log_file, logging.getLevelName(root_level))
    if removed:
        root.info("Pruned %d old log file(s) from %s", len(removed), log_directory)
    return log_file


__all__ = ["configure_logging", "prune_old_logs", "resolve_level"]
