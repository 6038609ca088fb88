"""Generic coercion utilities shared across the restream codebase."""
from __future__ import annotations

from typing import Any, Optional


def to_bool(value: Any, *, allow_blank_false: bool = True) -> bool:
    """Best-effort conversion of common truthy/falsey inputs to ``bool``."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        truthy = {"true", "1", "yes", "on"}
        falsy = {"false", "0", "no", "off"}
        if allow_blank_false:
            falsy.add("")
        if lowered in truthy:
            return True
        if lowered in falsy:
            return False
    return False


def to_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_int(value: Any, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def coerce_float(value: Any, fallback: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return fallback


def parse_positive_int(value: Any) -> Optional[int]:
    """Return ``value`` as a strictly positive int, or ``None`` when malformed.

    Only plain decimal digits are accepted so that ``"7abc"``, ``"-1"`` or
    ``"1e3"`` are rejected rather than partially parsed.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    text = str(value).strip() if value is not None else ""
    if not (text.isascii() and text.isdigit()):
        return None
    number = int(text)
    return number if number > 0 else None


__all__ = [
    "to_bool",
    "to_optional_str",
    "coerce_int",
    "coerce_float",
    "parse_positive_int",
]
