"""Signal orchestration used to stop relay processes."""
from __future__ import annotations

import logging
import signal
import threading
from subprocess import TimeoutExpired
from typing import Optional

from .process import RelayProcess

LOGGER = logging.getLogger(__name__)


class StopStrategy:
    """Coordinate graceful shutdown of the FFmpeg relay.

    ``request_stop`` never blocks the caller: the SIGINT -> SIGTERM -> SIGKILL
    ladder runs on a daemon thread and the supervisor's watcher reports the
    actual exit.
    """

    def __init__(
        self,
        *,
        graceful_timeout: float = 5.0,
        terminate_timeout: float = 5.0,
        kill_timeout: float = 2.0,
    ) -> None:
        self._graceful_timeout = max(0.0, graceful_timeout)
        self._terminate_timeout = max(0.0, terminate_timeout)
        self._kill_timeout = max(0.0, kill_timeout)

    def request_stop(self, handle: RelayProcess) -> Optional[threading.Thread]:
        """Flag ``handle`` as intentionally stopped and start the signal ladder."""

        handle.mark_stop_requested()
        if not handle.is_running():
            LOGGER.debug("Relay process %s already exited; nothing to stop", handle.pid)
            return None
        thread = threading.Thread(
            target=self.shutdown,
            args=(handle,),
            name=f"relay-stop-{handle.pid}",
            daemon=True,
        )
        thread.start()
        return thread

    def shutdown(self, handle: RelayProcess) -> Optional[int]:
        """Stop the process, escalating signals until it exits."""

        process = handle.process
        if not self._send(process, signal.SIGINT, "SIGINT"):
            return process.poll()

        returncode = self._wait_for_exit(process, self._graceful_timeout)
        if returncode is None and process.poll() is None:
            LOGGER.warning("Relay still running after SIGINT; sending SIGTERM")
            self._send(process, signal.SIGTERM, "SIGTERM")
            returncode = self._wait_for_exit(process, self._terminate_timeout)

        if returncode is None and process.poll() is None:
            LOGGER.error("Relay ignored SIGTERM; sending SIGKILL")
            self._send(process, signal.SIGKILL, "SIGKILL")
            returncode = self._wait_for_exit(process, self._kill_timeout)
            if returncode is None:
                LOGGER.error("Relay process still running after SIGKILL attempt")
                returncode = process.returncode

        if returncode is not None:
            LOGGER.info("Relay (pid=%s) exited with %s", handle.pid, returncode)
        else:
            LOGGER.warning("Relay exit code unknown after stop sequence")
        return returncode

    @staticmethod
    def _send(process, sig: signal.Signals, label: str) -> bool:
        try:
            LOGGER.info("Sending %s to relay (pid=%s)", label, process.pid)
            process.send_signal(sig)
        except ProcessLookupError:
            LOGGER.debug("Relay process %s already gone", process.pid)
            return False
        except OSError as exc:
            LOGGER.exception("Failed to send %s to relay process: %s", label, exc)
        return True

    @staticmethod
    def _wait_for_exit(process, timeout: float) -> Optional[int]:
        try:
            return process.wait(timeout=timeout)
        except TimeoutExpired:
            return None


__all__ = ["StopStrategy"]
