import json

import pytest

from restream.engine import RelayStatus, RelayStatusBroadcaster
from restream.engine import status as status_module

from conftest import wait_until


class RecordingRedis:
    def __init__(self) -> None:
        self.values = {}
        self.published = []

    def ping(self) -> bool:
        return True

    def set(self, key, value, ex=None):
        self.values[key] = (value, ex)

    def publish(self, channel, payload):
        self.published.append((channel, payload))

    def close(self) -> None:
        pass


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> RecordingRedis:
    client = RecordingRedis()
    monkeypatch.setattr(status_module.redis, "from_url", lambda url, **kwargs: client)
    return client


def test_publish_writes_key_and_channel(fake_redis: RecordingRedis) -> None:
    broadcaster = RelayStatusBroadcaster(
        redis_url="redis://localhost:6379/0",
        channel="restream:relay:status",
        ttl_seconds=30,
    )
    status = RelayStatus(
        state="running",
        source_id=7,
        pid=1234,
        manifest_url="/hls/7/playlist.m3u8",
        output_dir="/tmp/stream_data/7",
        last_error=None,
    )

    broadcaster.publish(status)

    raw, ttl = fake_redis.values["restream:relay:status"]
    session = json.loads(raw)["session"]
    assert ttl == 30
    assert session["activeSourceId"] == 7
    assert session["state"] == "running"
    assert session["origin"] == "restream"
    assert fake_redis.published[0][0] == "restream:relay:status"


def test_controller_broadcasts_transitions(fake_redis: RecordingRedis, make_controller) -> None:
    broadcaster = RelayStatusBroadcaster(redis_url="redis://localhost:6379/0", channel="events")
    controller = make_controller(status_broadcaster=broadcaster)

    def states():
        return [json.loads(payload)["session"]["state"] for _, payload in fake_redis.published]

    try:
        controller.request_playback(7)
        assert wait_until(lambda: "running" in states())
        controller.stop_active()
        assert "idle" in states()
        assert states()[0] in ("starting", "running")
    finally:
        controller.shutdown()


def test_broadcaster_without_url_is_inert() -> None:
    broadcaster = RelayStatusBroadcaster(redis_url=None)

    assert broadcaster.available is False
    broadcaster.publish(
        RelayStatus(state="idle", source_id=None, pid=None, manifest_url=None, output_dir=None, last_error=None)
    )
