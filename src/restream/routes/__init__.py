"""HTTP route blueprints for the restream service."""
from __future__ import annotations

from .channels import CHANNELS_BLUEPRINT
from .health import HEALTH_BLUEPRINT
from .stream import STREAM_BLUEPRINT

API_BLUEPRINTS = [
    STREAM_BLUEPRINT,
    CHANNELS_BLUEPRINT,
    HEALTH_BLUEPRINT,
]

__all__ = ["API_BLUEPRINTS"]
