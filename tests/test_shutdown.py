import signal

import pytest
from flask import Flask

from conftest import wait_until
from restream.app import extensions
from restream.shutdown import ShutdownCoordinator


class RecordingController:
    def __init__(self) -> None:
        self.shutdown_calls = 0

    def shutdown(self) -> bool:
        self.shutdown_calls += 1
        return True


def test_first_signal_tears_down_and_exits() -> None:
    controller = RecordingController()
    exits = []
    sleeps = []
    coordinator = ShutdownCoordinator(
        controller,
        exit_delay=1.5,
        exit_func=exits.append,
        sleep=sleeps.append,
    )

    assert coordinator.handle(signal.SIGTERM) is True

    assert controller.shutdown_calls == 1
    assert sleeps == [1.5]
    assert exits == [0]
    assert coordinator.triggered is True


def test_repeated_signals_are_ignored() -> None:
    controller = RecordingController()
    exits = []
    coordinator = ShutdownCoordinator(controller, exit_func=exits.append, sleep=lambda _: None)

    coordinator.handle(signal.SIGINT)
    assert coordinator.handle(signal.SIGTERM) is False
    assert coordinator.handle(signal.SIGINT) is False

    assert controller.shutdown_calls == 1
    assert exits == [0]


def test_shutdown_with_real_controller(controller, fake_relay) -> None:
    controller.request_playback(7)
    exits = []
    coordinator = ShutdownCoordinator(controller, exit_delay=0, exit_func=exits.append)

    coordinator.handle(signal.SIGINT)

    assert controller.active_source() is None
    assert wait_until(lambda: signal.SIGINT in fake_relay.process().signals)
    assert exits == [0]


def test_at_exit_tears_down_without_exiting() -> None:
    controller = RecordingController()
    exits = []
    sleeps = []
    coordinator = ShutdownCoordinator(controller, exit_delay=0.5, exit_func=exits.append, sleep=sleeps.append)

    assert coordinator.at_exit() is True
    assert coordinator.at_exit() is False
    assert coordinator.handle(signal.SIGTERM) is False

    assert controller.shutdown_calls == 1
    assert sleeps == [0.5]
    assert exits == []


def test_exit_hook_registered_by_app_tears_down_live_session(
    controller, fake_relay, monkeypatch: pytest.MonkeyPatch
) -> None:
    hooks = []
    monkeypatch.setattr(extensions.atexit, "register", hooks.append)
    app = Flask(__name__)
    app.config["RESTREAM_SHUTDOWN_DELAY"] = 0

    coordinator = extensions.register_teardown(app, controller, None)
    controller.request_playback(7)
    for hook in reversed(hooks):
        hook()

    assert app.extensions[extensions.SHUTDOWN_KEY] is coordinator
    assert coordinator.triggered is True
    assert controller.active_source() is None
    assert wait_until(lambda: signal.SIGINT in fake_relay.process().signals)
