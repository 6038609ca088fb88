"""Service layer for the restream application."""
from __future__ import annotations

from .catalog import CatalogService, ChannelQuery
from .relay import build_relay_controller, get_relay_controller

__all__ = [
    "CatalogService",
    "ChannelQuery",
    "build_relay_controller",
    "get_relay_controller",
]
