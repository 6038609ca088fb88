"""Redis-backed broadcaster for relay status updates."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

import redis
from redis import Redis
from redis.exceptions import RedisError

from .status_snapshot import RelayStatus

LOGGER = logging.getLogger(__name__)


class RelayStatusBroadcaster:
    """Publish controller status snapshots to Redis for downstream consumers."""

    def __init__(
        self,
        *,
        redis_url: Optional[str],
        prefix: str = "restream",
        key: str = "status",
        channel: Optional[str] = None,
        ttl_seconds: int = 30,
    ) -> None:
        self._redis_url = redis_url or ""
        self._prefix = prefix.strip() or "restream"
        self._key = key.strip() or "status"
        self._channel = channel.strip() if isinstance(channel, str) and channel.strip() else None
        self._ttl = max(0, int(ttl_seconds))
        self._client: Optional[Redis] = None
        self._last_error: Optional[str] = None
        self._connect()

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------
    def _connect(self) -> None:
        if not self._redis_url:
            self._last_error = "Redis URL not configured"
            self._client = None
            return

        try:
            client = redis.from_url(
                self._redis_url,
                socket_timeout=3,
                health_check_interval=30,
            )
            client.ping()
        except (RedisError, ValueError) as exc:  # pragma: no cover - network dependent
            LOGGER.warning("Failed to connect to Redis for status broadcasting: %s", exc)
            self._client = None
            self._last_error = f"Failed to connect to Redis: {exc}"
            return

        self._client = client
        self._last_error = None

    def _ensure_client(self) -> Optional[Redis]:
        client = self._client
        if client is not None:
            return client
        self._connect()
        return self._client

    def _drop_client(self) -> None:
        client = self._client
        self._client = None
        if client is None:
            return
        try:
            client.close()
        except RedisError:  # pragma: no cover - network dependent
            LOGGER.debug("Error while closing Redis status client")

    def close(self) -> None:
        self._drop_client()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def available(self) -> bool:
        return self._ensure_client() is not None

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def publish(self, status: RelayStatus) -> None:
        """Persist and broadcast the latest controller status."""

        if not self._redis_url:
            return
        client = self._ensure_client()
        if client is None:
            return
        payload = self._serialize(status)
        try:
            if self._ttl > 0:
                client.set(self._redis_key(), payload, ex=self._ttl)
            else:
                client.set(self._redis_key(), payload)
            if self._channel:
                client.publish(self._channel, payload)
            self._last_error = None
        except RedisError as exc:  # pragma: no cover - network dependent
            self._last_error = f"Failed to publish relay status: {exc}"
            LOGGER.debug("Failed to publish relay status to Redis: %s", exc)
            self._drop_client()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _redis_key(self) -> str:
        return f"{self._prefix}:relay:{self._key}"

    @staticmethod
    def _serialize(status: RelayStatus) -> str:
        session = status.to_payload(
            origin="restream",
            updated_at=datetime.now(timezone.utc).isoformat(),
        )
        return json.dumps({"session": session, "metadata": {}}, ensure_ascii=False, separators=(",", ":"))


__all__ = ["RelayStatusBroadcaster"]
