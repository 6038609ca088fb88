"""Data structures that describe the relay controller state."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class RelayStatus:
    """Snapshot of the controller's current state."""

    state: str
    source_id: Optional[int]
    pid: Optional[int]
    manifest_url: Optional[str]
    output_dir: Optional[str]
    last_error: Optional[str]
    started_at: Optional[float] = None

    @property
    def running(self) -> bool:
        return self.state == "running"

    def to_payload(
        self,
        *,
        origin: Optional[str] = None,
        updated_at: Optional[str] = None,
    ) -> dict[str, Any]:
        """Render the dictionary used by API responses and broadcasts."""

        payload: dict[str, Any] = {
            "activeSourceId": self.source_id,
            "state": self.state,
            "running": self.running,
            "pid": self.pid,
            "manifestUrl": self.manifest_url,
            "outputDir": self.output_dir,
            "lastError": self.last_error,
            "startedAt": self.started_at,
        }
        if origin:
            payload["origin"] = origin
        if updated_at:
            payload["updatedAt"] = updated_at
        return payload


__all__ = ["RelayStatus"]
