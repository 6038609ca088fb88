import dataclasses
import signal
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import wait_until
from restream.engine import SessionState
from restream.exceptions import (
    InvalidRequest,
    ProcessRuntimeError,
    ProcessStartFailure,
    ReadinessTimeout,
    SourceNotFound,
)


def test_first_request_starts_relay_and_redirects(controller, fake_relay, relay_settings) -> None:
    redirect = controller.request_playback("7")

    assert redirect.source_id == 7
    assert redirect.manifest_url == "/hls/7/playlist.m3u8"
    assert redirect.reused is False
    assert controller.active_source() == 7
    assert controller.status().state == "running"
    assert len(fake_relay.started) == 1
    assert fake_relay.started[0]["address"] == "http://iptv.example/7.ts"
    assert fake_relay.started[0]["output_dir"] == relay_settings.output_root / "7"


def test_repeat_request_reuses_running_session(controller, fake_relay) -> None:
    controller.request_playback(7)
    again = controller.request_playback(7)

    assert again.reused is True
    assert again.manifest_url == "/hls/7/playlist.m3u8"
    assert len(fake_relay.started) == 1


def test_other_source_is_redirected_to_live_session(controller, fake_relay) -> None:
    controller.request_playback(7)

    redirect = controller.request_playback(8)

    assert redirect.source_id == 7
    assert redirect.manifest_url == "/hls/7/playlist.m3u8"
    assert controller.active_source() == 7
    assert len(fake_relay.started) == 1
    assert fake_relay.process().signals == []


@pytest.mark.parametrize("raw", ["abc", "0", "-1", "7abc", "", None, "1.5"])
def test_malformed_source_id_is_rejected(controller, fake_relay, raw) -> None:
    with pytest.raises(InvalidRequest):
        controller.request_playback(raw)

    assert controller.active_source() is None
    assert fake_relay.started == []


def test_unknown_source_is_not_found(controller, fake_relay) -> None:
    with pytest.raises(SourceNotFound):
        controller.request_playback(99)

    assert controller.active_source() is None
    assert fake_relay.started == []


def test_concurrent_first_requests_launch_single_relay(controller, fake_relay) -> None:
    fake_relay.auto_ready = False
    barrier = threading.Barrier(4)

    def request(source_id: int):
        barrier.wait()
        return controller.request_playback(source_id)

    with ThreadPoolExecutor(max_workers=4) as pool:
        futures = [pool.submit(request, source_id) for source_id in (5, 7, 8, 7)]
        assert wait_until(lambda: len(fake_relay.started) >= 1)
        fake_relay.mark_ready(0)
        results = [future.result(timeout=10) for future in futures]

    assert len(fake_relay.started) == 1
    winner = controller.active_source()
    assert winner is not None
    assert {result.source_id for result in results} == {winner}
    assert {result.manifest_url for result in results} == {f"/hls/{winner}/playlist.m3u8"}


def test_same_source_joins_pending_start(controller, fake_relay) -> None:
    fake_relay.auto_ready = False

    with ThreadPoolExecutor(max_workers=2) as pool:
        first = pool.submit(controller.request_playback, 7)
        assert wait_until(lambda: len(fake_relay.started) == 1)
        second = pool.submit(controller.request_playback, 7)
        fake_relay.mark_ready()
        results = [first.result(timeout=10), second.result(timeout=10)]

    assert len(fake_relay.started) == 1
    assert all(result.manifest_url == "/hls/7/playlist.m3u8" for result in results)


def test_readiness_timeout_tears_down_session(make_controller, fake_relay, relay_settings) -> None:
    settings = dataclasses.replace(relay_settings, readiness_attempts=3, readiness_interval=0.01)
    controller = make_controller(settings=settings)
    fake_relay.auto_ready = False

    with pytest.raises(ReadinessTimeout):
        controller.request_playback(7)

    assert controller.active_source() is None
    process = fake_relay.process()
    assert wait_until(lambda: process.poll() is not None)
    assert signal.SIGINT in process.signals
    output_dir = settings.output_root / "7"
    assert wait_until(lambda: not output_dir.exists())


def test_runtime_error_fails_pending_request(controller, fake_relay) -> None:
    fake_relay.auto_ready = False

    with ThreadPoolExecutor(max_workers=1) as pool:
        pending = pool.submit(controller.request_playback, 7)
        assert wait_until(lambda: len(fake_relay.started) == 1)
        fake_relay.process().finish(1)
        with pytest.raises(ProcessRuntimeError):
            pending.result(timeout=10)

    assert controller.active_source() is None
    assert "failed" in (controller.status().last_error or "")


def test_unexpected_end_resets_slot(controller, fake_relay) -> None:
    controller.request_playback(7)

    fake_relay.process().finish(0)

    assert wait_until(lambda: controller.active_source() is None)
    assert "ended unexpectedly" in (controller.status().last_error or "")
    # next request starts a fresh relay
    controller.request_playback(8)
    assert controller.active_source() == 8
    assert len(fake_relay.started) == 2


def test_start_failure_leaves_slot_empty(controller, fake_relay) -> None:
    fake_relay.fail_start = True

    with pytest.raises(ProcessStartFailure):
        controller.request_playback(7)

    assert controller.active_source() is None
    assert controller.status().state == "idle"


def test_missing_manifest_restarts_same_source(controller, fake_relay, relay_settings) -> None:
    controller.request_playback(7)
    first = fake_relay.process()
    manifest = relay_settings.manifest_path_for(7)
    manifest.unlink()

    redirect = controller.request_playback(7)

    assert redirect.manifest_url == "/hls/7/playlist.m3u8"
    assert len(fake_relay.started) == 2
    assert wait_until(lambda: first.poll() is not None)
    assert controller.active_source() == 7
    # the reclaim scheduled for the stale session must not delete the new output
    threading.Event().wait(relay_settings.reclaim_grace_seconds * 3)
    assert manifest.exists()


def test_stop_active_tears_down_and_reclaims(controller, fake_relay, relay_settings) -> None:
    controller.request_playback(7)

    assert controller.stop_active() is True
    assert controller.stop_active() is False
    assert controller.active_source() is None
    assert wait_until(lambda: fake_relay.process().poll() is not None)
    assert wait_until(lambda: not relay_settings.output_dir_for(7).exists())


def test_teardown_is_idempotent(controller, fake_relay) -> None:
    controller.request_playback(7)
    session = controller.current_session()

    assert controller.teardown(session) is True
    assert controller.teardown(session) is False
    assert session.state is SessionState.STOPPED
    assert session.cleanup_scheduled is True
    assert session.process is None


def test_shutdown_refuses_new_sessions(controller, fake_relay) -> None:
    controller.request_playback(7)

    assert controller.shutdown() is True
    assert controller.active_source() is None
    with pytest.raises(ProcessStartFailure):
        controller.request_playback(8)
    assert len(fake_relay.started) == 1


def test_status_reports_idle_when_empty(controller) -> None:
    status = controller.status()

    assert status.state == "idle"
    assert status.to_payload()["activeSourceId"] is None
