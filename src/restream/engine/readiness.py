"""Background polling for the HLS manifest of a starting relay."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from enum import Enum
from pathlib import Path
from typing import Optional

LOGGER = logging.getLogger(__name__)


class ReadinessResult(str, Enum):
    READY = "ready"
    TIMED_OUT = "timed_out"


class ReadinessTask:
    """Poll for ``manifest_path`` until it exists or attempts run out.

    ``future`` settles exactly once: with a :class:`ReadinessResult`, with the
    exception raised by the filesystem check, or as cancelled.
    """

    def __init__(self, manifest_path: Path, *, attempts: int, interval: float) -> None:
        self.manifest_path = Path(manifest_path)
        self.attempts = max(1, int(attempts))
        self.interval = max(0.0, float(interval))
        self.future: Future[ReadinessResult] = Future()
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._settled = False
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "ReadinessTask":
        with self._lock:
            if self._thread is not None or self._settled:
                return self
            self._thread = threading.Thread(
                target=self._run,
                name=f"relay-readiness-{self.manifest_path.parent.name}",
                daemon=True,
            )
            thread = self._thread
        thread.start()
        return self

    def cancel(self) -> bool:
        """Stop polling. Returns ``False`` when the task had already settled."""

        self._cancel.set()
        if not self._claim():
            return False
        self.future.cancel()
        return True

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _claim(self) -> bool:
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            return True

    def _run(self) -> None:
        # Checks at 0, interval, ..., attempts * interval; the deadline tick is included.
        checks = 0
        try:
            while True:
                if self._cancel.is_set():
                    return
                checks += 1
                if self.manifest_path.is_file():
                    LOGGER.info(
                        "Manifest %s ready after %d check(s)", self.manifest_path, checks
                    )
                    self._settle(ReadinessResult.READY)
                    return
                if checks > self.attempts:
                    break
                if self._cancel.wait(self.interval):
                    return
            LOGGER.warning(
                "Manifest %s not ready after %.1fs (%d check(s))",
                self.manifest_path,
                self.attempts * self.interval,
                checks,
            )
            self._settle(ReadinessResult.TIMED_OUT)
        except OSError as exc:
            LOGGER.error("Readiness check for %s failed: %s", self.manifest_path, exc)
            if self._claim():
                self.future.set_exception(exc)

    def _settle(self, result: ReadinessResult) -> None:
        if self._claim():
            self.future.set_result(result)


class ManifestReadinessPoller:
    """Factory for :class:`ReadinessTask` objects sharing one polling policy."""

    def __init__(self, *, attempts: int = 20, interval: float = 1.0) -> None:
        self.attempts = attempts
        self.interval = interval

    def watch(self, manifest_path: Path) -> ReadinessTask:
        """Return an unstarted task; call ``start()`` after attaching callbacks."""

        return ReadinessTask(manifest_path, attempts=self.attempts, interval=self.interval)


__all__ = ["ManifestReadinessPoller", "ReadinessResult", "ReadinessTask"]
