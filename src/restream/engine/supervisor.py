"""Supervise the FFmpeg relay process for the live session."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import ProcessStartFailure
from .encoder import FFmpegHlsRelay
from .process import ExitKind, RelayExit, RelayProcess
from .stop_strategy import StopStrategy

LOGGER = logging.getLogger(__name__)

ExitCallback = Callable[[RelayProcess, RelayExit], None]


@dataclass(frozen=True)
class SupervisorCallbacks:
    """Callbacks used to surface process events from the watcher thread."""

    on_exit: ExitCallback


class TranscoderSupervisor:
    """Launch relay processes and report exactly one exit event for each."""

    def __init__(
        self,
        relay: FFmpegHlsRelay,
        stop_strategy: Optional[StopStrategy] = None,
        *,
        max_runtime_seconds: float = 0.0,
    ) -> None:
        self._relay = relay
        self._stop_strategy = stop_strategy or StopStrategy()
        self._max_runtime = max(0.0, float(max_runtime_seconds or 0.0))

    # ------------------------------------------------------------------
    # Launch
    # ------------------------------------------------------------------
    def launch(
        self,
        source_id: int,
        source_address: str,
        output_dir: Path,
        callbacks: SupervisorCallbacks,
    ) -> RelayProcess:
        """Start FFmpeg for ``source_address``.

        Returning a handle is the start confirmation. Failures to spawn the
        binary raise :class:`ProcessStartFailure` and no exit event follows.
        """

        try:
            process = self._relay.start(source_address, output_dir)
        except (OSError, ValueError) as exc:
            LOGGER.error("Failed to launch relay for source %s: %s", source_id, exc)
            raise ProcessStartFailure(f"Failed to start relay process: {exc}") from exc

        handle = RelayProcess(source_id=source_id, process=process)
        LOGGER.info("Started relay for source %s (pid=%s)", source_id, handle.pid)

        watcher = threading.Thread(
            target=self._watch,
            args=(handle, callbacks),
            name=f"relay-watch-{handle.pid}",
            daemon=True,
        )
        watcher.start()
        return handle

    def stop(self, handle: RelayProcess) -> None:
        """Request a graceful stop without waiting for the process to exit."""

        self._stop_strategy.request_stop(handle)

    # ------------------------------------------------------------------
    # Watcher
    # ------------------------------------------------------------------
    def _watch(self, handle: RelayProcess, callbacks: SupervisorCallbacks) -> None:
        timer = self._arm_max_runtime(handle)
        try:
            self._drain_stderr(handle)
            returncode = handle.process.wait()
        finally:
            if timer is not None:
                timer.cancel()

        event = handle.classify_exit(returncode)
        if event.kind is ExitKind.STOPPED:
            LOGGER.info("Relay for source %s stopped (%s)", handle.source_id, event.describe())
        elif event.kind is ExitKind.FAILED:
            LOGGER.error(
                "Relay for source %s failed with %s\n%s",
                handle.source_id,
                event.returncode,
                "\n".join(event.stderr_tail),
            )
        else:
            LOGGER.warning("Relay for source %s ended unexpectedly", handle.source_id)

        try:
            callbacks.on_exit(handle, event)
        except Exception:  # pragma: no cover
            LOGGER.exception("Relay exit callback raised")

    @staticmethod
    def _drain_stderr(handle: RelayProcess) -> None:
        stream = getattr(handle.process, "stderr", None)
        if stream is None:
            return
        try:
            for line in stream:
                text = line.rstrip()
                if text:
                    handle.stderr_tail.append(text)
                    LOGGER.debug("ffmpeg[%s]: %s", handle.pid, text)
        except (OSError, ValueError):
            LOGGER.debug("Relay stderr closed for pid %s", handle.pid)
        finally:
            try:
                stream.close()
            except OSError:
                pass

    def _arm_max_runtime(self, handle: RelayProcess) -> Optional[threading.Timer]:
        if self._max_runtime <= 0:
            return None

        def _expire() -> None:
            LOGGER.warning(
                "Relay for source %s reached max runtime of %ss; stopping",
                handle.source_id,
                self._max_runtime,
            )
            self.stop(handle)

        timer = threading.Timer(self._max_runtime, _expire)
        timer.daemon = True
        timer.start()
        return timer


__all__ = ["SupervisorCallbacks", "TranscoderSupervisor"]
