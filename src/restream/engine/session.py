"""State carried by the single relay session slot."""
from __future__ import annotations

import time
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .process import RelayProcess
from .readiness import ReadinessTask


class SessionState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class PlaybackRedirect:
    """Where a playback request should be sent."""

    source_id: int
    manifest_url: str
    reused: bool = False


@dataclass(eq=False)
class RelaySession:
    """The live relay, if any. Compared by identity."""

    source_id: int
    output_dir: Path
    manifest_path: Path
    manifest_url: str
    process: Optional[RelayProcess] = None
    state: SessionState = SessionState.STARTING
    cleanup_scheduled: bool = False
    readiness: Optional[ReadinessTask] = None
    outcome: "Future[PlaybackRedirect]" = field(default_factory=Future)
    started_at: float = field(default_factory=time.time)

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None

    def manifest_ready(self) -> bool:
        return self.manifest_path.is_file()

    def answer(self, redirect: PlaybackRedirect) -> bool:
        """Fulfil the pending outcome once; later calls are ignored."""

        if self.outcome.done():
            return False
        try:
            self.outcome.set_result(redirect)
        except InvalidStateError:
            return False
        return True

    def fail(self, exc: BaseException) -> bool:
        if self.outcome.done():
            return False
        try:
            self.outcome.set_exception(exc)
        except InvalidStateError:
            return False
        return True


__all__ = ["PlaybackRedirect", "RelaySession", "SessionState"]
