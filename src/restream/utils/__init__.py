"""Utility helpers shared across the restream service."""
from __future__ import annotations

from .coerce import (
    coerce_float,
    coerce_int,
    parse_positive_int,
    to_bool,
    to_optional_str,
)
from .urls import ensure_leading_slash, strip_trailing_slash

__all__ = [
    "to_bool",
    "to_optional_str",
    "coerce_int",
    "coerce_float",
    "parse_positive_int",
    "ensure_leading_slash",
    "strip_trailing_slash",
]
