"""Single-session relay controller."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Optional, Protocol

from ..exceptions import (
    InvalidRequest,
    ProcessRuntimeError,
    ProcessStartFailure,
    ReadinessTimeout,
    RelayError,
    SourceNotFound,
)
from ..utils import parse_positive_int
from .config import RelaySettings
from .process import ExitKind, RelayExit, RelayProcess
from .readiness import ManifestReadinessPoller, ReadinessResult
from .reclaimer import OutputReclaimer
from .session import PlaybackRedirect, RelaySession, SessionState
from .status import RelayStatusBroadcaster
from .status_snapshot import RelayStatus
from .supervisor import SupervisorCallbacks, TranscoderSupervisor

LOGGER = logging.getLogger(__name__)


class SourceCatalog(Protocol):
    def lookup_source_address(self, source_id: int) -> Optional[str]:
        ...


class RelayController:
    """Own the session slot and every transition applied to it.

    All mutations of the slot happen under ``_lock``. Request threads block on
    the session's outcome future, never on the lock, while the readiness
    poller and the process watcher report back through callbacks.
    """

    def __init__(
        self,
        settings: RelaySettings,
        catalog: SourceCatalog,
        supervisor: TranscoderSupervisor,
        poller: ManifestReadinessPoller,
        reclaimer: OutputReclaimer,
        *,
        status_broadcaster: Optional[RelayStatusBroadcaster] = None,
        outcome_timeout: Optional[float] = None,
    ) -> None:
        self.settings = settings
        self._catalog = catalog
        self._supervisor = supervisor
        self._poller = poller
        self._reclaimer = reclaimer
        self._status_broadcaster = status_broadcaster
        if outcome_timeout is None:
            outcome_timeout = settings.readiness_window_seconds + max(5.0, settings.stop_grace_seconds)
        self._outcome_timeout = outcome_timeout
        self._lock = threading.Lock()
        self._session: Optional[RelaySession] = None
        self._last_error: Optional[str] = None
        self._shutting_down = False

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------
    def request_playback(self, source_id: Any) -> PlaybackRedirect:
        """Return where the client should fetch the stream for ``source_id``.

        Starts a relay when the slot is empty and blocks until its manifest is
        ready. A request for a different source than the live one is
        redirected to the live session instead of replacing it.
        """

        parsed = parse_positive_int(source_id)
        if parsed is None:
            raise InvalidRequest(f"Invalid source id: {source_id!r}")

        address: Optional[str] = None
        while True:
            pending: Optional[Future[PlaybackRedirect]] = None
            waiting_on_other = False
            changed = False
            try:
                with self._lock:
                    if self._shutting_down:
                        raise ProcessStartFailure("Relay is shutting down")
                    current = self._session
                    if (
                        current is not None
                        and current.source_id == parsed
                        and current.state is SessionState.RUNNING
                        and not current.manifest_ready()
                    ):
                        LOGGER.warning(
                            "Manifest for source %s is missing; restarting relay", parsed
                        )
                        changed = True
                        self._teardown_locked(current, "manifest missing")
                        current = None

                    if current is None:
                        if address is not None:
                            changed = True
                            pending = self._start_locked(parsed, address).outcome
                    elif current.state is SessionState.RUNNING:
                        if current.source_id != parsed:
                            LOGGER.info(
                                "Source %s requested while %s is live; redirecting",
                                parsed,
                                current.source_id,
                            )
                        return PlaybackRedirect(
                            source_id=current.source_id,
                            manifest_url=current.manifest_url,
                            reused=True,
                        )
                    else:
                        pending = current.outcome
                        waiting_on_other = current.source_id != parsed
            finally:
                if changed:
                    self._broadcast_status()

            if pending is None:
                address = self._resolve_address(parsed)
                continue
            if waiting_on_other:
                self._wait_quietly(pending)
                continue
            return self._await_outcome(pending)

    def _resolve_address(self, source_id: int) -> str:
        address = self._catalog.lookup_source_address(source_id)
        if not address:
            raise SourceNotFound(f"Source {source_id} not found")
        return address

    def _await_outcome(self, outcome: Future[PlaybackRedirect]) -> PlaybackRedirect:
        try:
            return outcome.result(timeout=self._outcome_timeout)
        except FutureTimeout as exc:
            raise ReadinessTimeout("Timed out waiting for the relay to become ready") from exc
        except CancelledError as exc:
            raise ProcessRuntimeError("Relay start was cancelled") from exc

    def _wait_quietly(self, outcome: Future[PlaybackRedirect]) -> None:
        try:
            outcome.result(timeout=self._outcome_timeout)
        except (RelayError, FutureTimeout, CancelledError):
            pass

    def _start_locked(self, source_id: int, address: str) -> RelaySession:
        settings = self.settings
        output_dir = settings.output_dir_for(source_id)
        try:
            self._reclaimer.prepare(output_dir)
        except OSError as exc:
            self._last_error = f"Failed to prepare output directory: {exc}"
            raise ProcessStartFailure(self._last_error) from exc

        session = RelaySession(
            source_id=source_id,
            output_dir=output_dir,
            manifest_path=settings.manifest_path_for(source_id),
            manifest_url=settings.manifest_url_for(source_id),
        )
        try:
            session.process = self._supervisor.launch(
                source_id,
                address,
                output_dir,
                SupervisorCallbacks(on_exit=self._on_process_exit),
            )
        except ProcessStartFailure as exc:
            self._last_error = str(exc)
            self._reclaimer.schedule(output_dir)
            raise

        self._session = session
        self._last_error = None
        LOGGER.info("Relay session for source %s starting", source_id)

        task = self._poller.watch(session.manifest_path)
        session.readiness = task
        task.future.add_done_callback(lambda fut, s=session: self._on_readiness(s, fut))
        task.start()
        return session

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------
    def _on_readiness(self, session: RelaySession, fut: Future[ReadinessResult]) -> None:
        # cancel() fires this synchronously from teardown, which holds the lock
        if fut.cancelled():
            return
        exc = fut.exception()
        with self._lock:
            if self._session is not session or session.state is not SessionState.STARTING:
                return
            if exc is None and fut.result() is ReadinessResult.READY:
                session.state = SessionState.RUNNING
                LOGGER.info("Relay for source %s is live at %s", session.source_id, session.manifest_url)
                session.answer(
                    PlaybackRedirect(source_id=session.source_id, manifest_url=session.manifest_url)
                )
            else:
                if exc is None:
                    error: RelayError = ReadinessTimeout(
                        f"Manifest for source {session.source_id} was not produced in time"
                    )
                else:
                    error = ReadinessTimeout(f"Manifest check failed: {exc}")
                self._last_error = str(error)
                self._teardown_locked(session, "readiness failed", error=error)
        self._broadcast_status()

    def _on_process_exit(self, handle: RelayProcess, event: RelayExit) -> None:
        with self._lock:
            session = self._session
            if session is None or session.process is not handle:
                LOGGER.debug("Ignoring exit of stale relay process %s", handle.pid)
                return
            error: Optional[RelayError] = None
            if event.kind is ExitKind.FAILED:
                error = ProcessRuntimeError(f"Relay process failed ({event.describe()})")
            elif event.kind is ExitKind.ENDED:
                error = ProcessRuntimeError("Relay process ended unexpectedly")
            if error is not None:
                self._last_error = str(error)
            self._teardown_locked(session, event.kind.value, error=error)
        self._broadcast_status()

    def _teardown_locked(
        self,
        session: RelaySession,
        reason: str,
        *,
        error: Optional[RelayError] = None,
    ) -> bool:
        if self._session is not session:
            return False
        LOGGER.info("Tearing down relay for source %s (%s)", session.source_id, reason)
        self._session = None
        session.state = SessionState.STOPPED

        if session.readiness is not None:
            session.readiness.cancel()
        if session.process is not None:
            self._supervisor.stop(session.process)
            session.process = None
        if not session.cleanup_scheduled:
            session.cleanup_scheduled = True
            self._reclaimer.schedule(session.output_dir)
        session.fail(error or ProcessRuntimeError(f"Relay stopped before it was ready ({reason})"))
        return True

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------
    def teardown(self, session: RelaySession, reason: str = "teardown") -> bool:
        """Tear ``session`` down if it still occupies the slot."""

        with self._lock:
            removed = self._teardown_locked(session, reason)
        if removed:
            self._broadcast_status()
        return removed

    def stop_active(self) -> bool:
        with self._lock:
            session = self._session
            if session is None:
                return False
            self._teardown_locked(session, "stop requested")
        self._broadcast_status()
        return True

    def shutdown(self) -> bool:
        """Refuse new sessions and tear down the live one, if any."""

        with self._lock:
            self._shutting_down = True
            session = self._session
            removed = session is not None and self._teardown_locked(session, "shutdown")
        self._broadcast_status()
        return removed

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    def active_source(self) -> Optional[int]:
        session = self._session
        return session.source_id if session is not None else None

    def current_session(self) -> Optional[RelaySession]:
        return self._session

    def status(self) -> RelayStatus:
        with self._lock:
            session = self._session
            last_error = self._last_error
        if session is None:
            return RelayStatus(
                state="idle",
                source_id=None,
                pid=None,
                manifest_url=None,
                output_dir=None,
                last_error=last_error,
            )
        return RelayStatus(
            state=session.state.value,
            source_id=session.source_id,
            pid=session.pid,
            manifest_url=session.manifest_url,
            output_dir=str(session.output_dir),
            last_error=last_error,
            started_at=session.started_at,
        )

    def _broadcast_status(self) -> None:
        broadcaster = self._status_broadcaster
        if broadcaster is None:
            return
        broadcaster.publish(self.status())


__all__ = ["RelayController", "SourceCatalog"]
