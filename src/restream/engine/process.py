"""Handle wrapping the FFmpeg process owned by a relay session."""
from __future__ import annotations

import subprocess
import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Optional, Tuple

STDERR_TAIL_LINES = 20


class ExitKind(str, Enum):
    """How a relay process ended."""

    STOPPED = "stopped"
    FAILED = "failed"
    ENDED = "ended"


@dataclass(frozen=True)
class RelayExit:
    """Exit event reported once per relay process."""

    kind: ExitKind
    returncode: Optional[int]
    stderr_tail: Tuple[str, ...] = ()

    def describe(self) -> str:
        if not self.stderr_tail:
            return f"exit code {self.returncode}"
        return f"exit code {self.returncode}: {self.stderr_tail[-1]}"


@dataclass(eq=False)
class RelayProcess:
    """Wrap the FFmpeg process for a single relay session."""

    source_id: int
    process: subprocess.Popen[str]
    stderr_tail: Deque[str] = field(default_factory=lambda: deque(maxlen=STDERR_TAIL_LINES))
    _stop_requested: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def pid(self) -> Optional[int]:
        return getattr(self.process, "pid", None)

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def mark_stop_requested(self) -> None:
        self._stop_requested.set()

    def is_running(self) -> bool:
        return self.process.poll() is None

    def classify_exit(self, returncode: Optional[int]) -> RelayExit:
        """Turn an exit status into the event the controller reacts to."""

        tail = tuple(self.stderr_tail)
        if self.stop_requested:
            kind = ExitKind.STOPPED
        elif returncode:
            kind = ExitKind.FAILED
        else:
            kind = ExitKind.ENDED
        return RelayExit(kind=kind, returncode=returncode, stderr_tail=tail)


__all__ = ["ExitKind", "RelayExit", "RelayProcess", "STDERR_TAIL_LINES"]
