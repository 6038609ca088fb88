"""URL manipulation helpers."""
from __future__ import annotations


def ensure_leading_slash(path: str | None) -> str:
    trimmed = (path or "").strip()
    if not trimmed.startswith("/"):
        trimmed = "/" + trimmed
    return trimmed


def strip_trailing_slash(url: str) -> str:
    trimmed = (url or "").strip()
    while trimmed.endswith("/"):
        trimmed = trimmed[:-1]
    return trimmed


__all__ = ["ensure_leading_slash", "strip_trailing_slash"]
