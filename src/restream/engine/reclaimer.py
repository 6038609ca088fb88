"""Deferred removal of relay output directories."""
from __future__ import annotations

import logging
import shutil
import threading
import uuid
from pathlib import Path
from typing import Dict, Optional

LOGGER = logging.getLogger(__name__)


class OutputReclaimer:
    """Delete a session's output directory after a short grace period.

    The grace period lets clients finish fetching the last segments. A
    directory that is about to host a new session is emptied by :meth:`prepare`,
    which also cancels any reclaim still pending for it. Deletion itself never
    happens while the internal lock is held.
    """

    def __init__(self, grace_seconds: float = 3.0) -> None:
        self.grace_seconds = max(0.0, float(grace_seconds))
        self._lock = threading.Lock()
        self._pending: Dict[Path, threading.Timer] = {}

    def schedule(self, output_dir: Path) -> bool:
        """Arm a one-shot reclaim. Returns ``False`` if one is already pending."""

        key = Path(output_dir)
        with self._lock:
            if key in self._pending:
                return False
            timer = threading.Timer(self.grace_seconds, self._fire, args=(key,))
            timer.daemon = True
            timer.name = f"relay-reclaim-{key.name}"
            self._pending[key] = timer
        LOGGER.info("Scheduled reclaim of %s in %.1fs", key, self.grace_seconds)
        timer.start()
        return True

    def is_pending(self, output_dir: Path) -> bool:
        with self._lock:
            return Path(output_dir) in self._pending

    def prepare(self, output_dir: Path) -> None:
        """Make ``output_dir`` an empty directory ready for a new session.

        Stale output is renamed aside and deleted on a background thread, so
        the caller only pays for a rename and a mkdir.
        """

        key = Path(output_dir)
        with self._lock:
            timer = self._pending.pop(key, None)
            if timer is not None:
                timer.cancel()
                LOGGER.info("Cancelled pending reclaim of %s", key)
            stale = self._detach(key)
            key.mkdir(parents=True, exist_ok=True)
        if stale is not None:
            LOGGER.info("Purging stale relay output in %s", key)
            threading.Thread(
                target=self._remove,
                args=(stale,),
                name=f"relay-purge-{key.name}",
                daemon=True,
            ).start()

    def reclaim_now(self, output_dir: Path) -> None:
        key = Path(output_dir)
        with self._lock:
            timer = self._pending.pop(key, None)
            if timer is not None:
                timer.cancel()
            stale = self._detach(key)
        if stale is not None:
            self._remove(stale)

    def _fire(self, output_dir: Path) -> None:
        with self._lock:
            timer = self._pending.get(output_dir)
            if timer is None or timer is not threading.current_thread():
                return
            del self._pending[output_dir]
            try:
                stale = self._detach(output_dir)
            except OSError as exc:
                LOGGER.warning("Failed to reclaim relay output %s: %s", output_dir, exc)
                return
        if stale is None:
            LOGGER.debug("Relay output %s already removed", output_dir)
            return
        self._remove(stale)

    @staticmethod
    def _detach(output_dir: Path) -> Optional[Path]:
        """Rename ``output_dir`` to a hidden sibling and return the new path."""

        if not output_dir.exists():
            return None
        stale = output_dir.with_name(f".stale-{output_dir.name}-{uuid.uuid4().hex[:8]}")
        output_dir.rename(stale)
        return stale

    @staticmethod
    def _remove(output_dir: Path) -> None:
        try:
            shutil.rmtree(output_dir)
            LOGGER.info("Reclaimed relay output %s", output_dir)
        except FileNotFoundError:
            LOGGER.debug("Relay output %s already removed", output_dir)
        except OSError as exc:
            LOGGER.warning("Failed to reclaim relay output %s: %s", output_dir, exc)


__all__ = ["OutputReclaimer"]
