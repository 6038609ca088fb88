import io
import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from restream.engine import (
    ManifestReadinessPoller,
    OutputReclaimer,
    RelayController,
    RelaySettings,
    StopStrategy,
    TranscoderSupervisor,
)


class FakeProcess:
    """Popen stand-in whose exit is driven by the test."""

    _next_pid = 40000

    def __init__(self, stderr_text: str = "") -> None:
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.stderr = io.StringIO(stderr_text)
        self.returncode: Optional[int] = None
        self.signals: List[int] = []
        self._exited = threading.Event()

    def finish(self, code: int) -> None:
        if self.returncode is None:
            self.returncode = code
        self._exited.set()

    def poll(self) -> Optional[int]:
        return self.returncode if self._exited.is_set() else None

    def wait(self, timeout: Optional[float] = None) -> int:
        if not self._exited.wait(timeout):
            raise subprocess.TimeoutExpired("ffmpeg", timeout)
        return self.returncode  # type: ignore[return-value]

    def send_signal(self, sig: int) -> None:
        if self._exited.is_set():
            raise ProcessLookupError(self.pid)
        self.signals.append(sig)
        if sig == signal.SIGINT:
            self.finish(255)


class FakeRelay:
    """Replacement for ``FFmpegHlsRelay`` that never spawns FFmpeg."""

    def __init__(self, settings: RelaySettings) -> None:
        self.settings = settings
        self.auto_ready = True
        self.fail_start = False
        self.started: List[Dict[str, object]] = []
        self._lock = threading.Lock()

    def start(self, source_address: str, output_dir: Path) -> FakeProcess:
        if self.fail_start:
            raise FileNotFoundError("ffmpeg")
        output_dir.mkdir(parents=True, exist_ok=True)
        process = FakeProcess()
        with self._lock:
            self.started.append({"address": source_address, "output_dir": output_dir, "process": process})
        if self.auto_ready:
            (output_dir / self.settings.hls.manifest_name).write_text("#EXTM3U\n", encoding="utf-8")
        return process

    def process(self, index: int = -1) -> FakeProcess:
        return self.started[index]["process"]  # type: ignore[return-value]

    def mark_ready(self, index: int = -1) -> None:
        output_dir: Path = self.started[index]["output_dir"]  # type: ignore[assignment]
        (output_dir / self.settings.hls.manifest_name).write_text("#EXTM3U\n", encoding="utf-8")


class FakeCatalog:
    def __init__(self, sources: Dict[int, str]) -> None:
        self.sources = dict(sources)
        self.lookups: List[int] = []

    def lookup_source_address(self, source_id: int) -> Optional[str]:
        self.lookups.append(source_id)
        return self.sources.get(source_id)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def relay_settings(tmp_path: Path) -> RelaySettings:
    return RelaySettings(
        output_root=tmp_path / "stream_data",
        readiness_attempts=250,
        readiness_interval=0.02,
        reclaim_grace_seconds=0.1,
        stop_grace_seconds=1.0,
    )


@pytest.fixture
def fake_relay(relay_settings: RelaySettings) -> FakeRelay:
    return FakeRelay(relay_settings)


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog({
        5: "http://iptv.example/5.ts",
        7: "http://iptv.example/7.ts",
        8: "http://iptv.example/8.ts",
    })


@pytest.fixture
def make_controller(relay_settings: RelaySettings, fake_relay: FakeRelay, fake_catalog: FakeCatalog):
    def _factory(**overrides) -> RelayController:
        settings = overrides.pop("settings", relay_settings)
        supervisor = TranscoderSupervisor(
            fake_relay,  # type: ignore[arg-type]
            StopStrategy(graceful_timeout=1.0, terminate_timeout=1.0, kill_timeout=1.0),
        )
        poller = ManifestReadinessPoller(
            attempts=settings.readiness_attempts,
            interval=settings.readiness_interval,
        )
        return RelayController(
            settings,
            overrides.pop("catalog", fake_catalog),
            supervisor,
            poller,
            OutputReclaimer(settings.reclaim_grace_seconds),
            **overrides,
        )

    return _factory


@pytest.fixture
def controller(make_controller):
    ctrl = make_controller()
    yield ctrl
    ctrl.shutdown()
