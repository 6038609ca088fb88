"""Minimal extended-M3U reader for IPTV playlists."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

LOGGER = logging.getLogger(__name__)

_ATTRIBUTE = re.compile(r"""([A-Za-z0-9_-]+)=(["'])(.*?)\2""")


@dataclass(frozen=True)
class PlaylistEntry:
    name: str
    url: str
    group_title: Optional[str] = None
    tvg_id: Optional[str] = None
    tvg_logo: Optional[str] = None


def extract_attributes(line: str) -> Dict[str, str]:
    """Return the ``key="value"`` pairs of an ``#EXTINF`` line plus its name.

    Keys are lower-cased. The display name is ``tvg-name`` when present,
    otherwise the text after the last comma, otherwise ``"Unknown"``; it is
    stored under ``"name"``.
    """

    attributes = {match.group(1).lower(): match.group(3) for match in _ATTRIBUTE.finditer(line)}
    after_comma: Optional[str] = None
    if "," in line:
        after_comma = line.rsplit(",", 1)[1].strip() or None
    attributes["name"] = attributes.get("tvg-name") or after_comma or "Unknown"
    return attributes


def iter_entries(lines: Iterable[str]) -> Iterator[PlaylistEntry]:
    """Yield one entry per ``#EXTINF`` line followed by a URI line."""

    pending: Optional[Dict[str, str]] = None
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if line.startswith("#EXTINF"):
            pending = extract_attributes(line)
            continue
        if line.startswith("#"):
            continue
        if pending is None:
            LOGGER.debug("Skipping URI without #EXTINF: %s", line)
            continue
        yield PlaylistEntry(
            name=pending["name"],
            url=line,
            group_title=pending.get("group-title") or None,
            tvg_id=pending.get("tvg-id"),
            tvg_logo=pending.get("tvg-logo"),
        )
        pending = None


def parse_m3u(path: Path) -> List[PlaylistEntry]:
    with Path(path).open("r", encoding="utf-8", errors="replace") as handle:
        return list(iter_entries(handle))


__all__ = ["PlaylistEntry", "extract_attributes", "iter_entries", "parse_m3u"]
