"""Playlist ingestion into the channel catalog."""
from __future__ import annotations

from .groups import GroupClassification, classify_group_title
from .loader import IngestReport, reclassify_catalog, replace_catalog
from .m3u import PlaylistEntry, extract_attributes, parse_m3u

__all__ = [
    "GroupClassification",
    "IngestReport",
    "PlaylistEntry",
    "classify_group_title",
    "extract_attributes",
    "parse_m3u",
    "reclassify_catalog",
    "replace_catalog",
]
