"""Signal and interpreter-exit handling that tears down the relay."""
from __future__ import annotations

import logging
import signal
import sys
import threading
import time
from typing import Callable, Iterable, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownCoordinator:
    """Tear down the live session once, then exit after ``exit_delay``.

    The delay covers scheduling the output reclaim and sending the relay its
    first stop signal; it does not wait for the reclaim to complete. Signals
    and interpreter exit share one coordinator and only the first one runs.
    """

    def __init__(
        self,
        controller,
        *,
        exit_delay: float = 1.0,
        exit_func: Callable[[int], None] = sys.exit,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._controller = controller
        self._exit_delay = max(0.0, float(exit_delay))
        self._exit_func = exit_func
        self._sleep = sleep
        self._lock = threading.Lock()
        self._triggered = False

    @property
    def triggered(self) -> bool:
        return self._triggered

    def install(self, signals: Iterable[signal.Signals] = DEFAULT_SIGNALS) -> None:
        for sig in signals:
            signal.signal(sig, self.handle)

    def handle(self, signum: int, frame: Optional[object] = None) -> bool:
        """Run the shutdown sequence. Returns ``False`` for repeated signals."""

        if not self._claim():
            LOGGER.info("Shutdown already in progress; ignoring signal %s", signum)
            return False

        LOGGER.info("Received signal %s; shutting down relay", signum)
        self._teardown()
        self._sleep(self._exit_delay)
        LOGGER.info("Exiting")
        self._exit_func(0)
        return True

    def at_exit(self) -> bool:
        """``atexit`` hook: tear down without calling ``exit_func``."""

        if not self._claim():
            return False
        LOGGER.info("Interpreter exiting; shutting down relay")
        if self._teardown():
            self._sleep(self._exit_delay)
        return True

    def _claim(self) -> bool:
        with self._lock:
            if self._triggered:
                return False
            self._triggered = True
            return True

    def _teardown(self) -> bool:
        try:
            return bool(self._controller.shutdown())
        except Exception:  # pragma: no cover
            LOGGER.exception("Relay teardown failed during shutdown")
            return False


__all__ = ["ShutdownCoordinator"]
