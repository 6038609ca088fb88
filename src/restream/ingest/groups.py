"""Classify playlist group titles into a location code and a cleaned title."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

UNCATEGORIZED = "Uncategorized"

# Insertion order is the match order.
LOCATION_MAPPINGS = {
    "ESPAÑA": "ES",
    "GERMANY": "DE",
    "FRANCE": "FR",
    "ITALY": "IT",
    "ENGLISH": "EN",
    "NORDIC": "ND",
    "TURKISH": "TR",
    "TURKSIH": "TR",
    "ÍSLANDS": "IS",
    "HEBREW": "IL",
    "QUÉBEC": "QC",
    "POLSKA": "PL",
    "SUOMEN": "FI",
    "SUOMI": "FI",
    "SVENSK": "SE",
    "SVENSKA": "SE",
    "NORGE": "NO",
    "NORSK": "NO",
    "INDIA": "IN",
    "INDIAN": "IN",
    "KOREAN": "KO",
    "KURDISH": "KU",
    "LATINO": "LA",
    "MALTA": "MT",
    "PAKISTAN": "PK",
    "PERSIAN": "IR",
    "PHILIPPINES": "PH",
    "RUSSAIN": "RU",
    "SOUTH AFRICA": "ZA",
    "VIDEOLAND": "NL",
}

WORLDWIDE_KEYWORDS = (
    "NETFLIX",
    "DISNEY+",
    "AMAZON PRIME",
    "APPLE TV+",
    "PARAMOUNT",
    "HBO MAX",
    "SHOWTIME",
    "UNIVERSAL",
    "PEACOCK",
    "DREAMWORKS",
    "MARVEL",
    "STAR WARS",
    "SOCCER",
    "VIAPLAY",
    "SKY",
)

_PREFIX_PIPE = re.compile(r"^([A-Z]{2})\|\s*(.*)$")
_PREFIX_DASH = re.compile(r"^([A-Z]{2})\s+-\s+(.*)$")
_PT_BR = re.compile(r"^PT/BR\s*-\s*(.*)$")
_WT_PIPE = re.compile(r"^(WT)\|\s*(.*)$")
_ARABIC = re.compile(r"[\u0600-\u06FF]")
_MENA = re.compile(r"MENA", re.IGNORECASE)
_EU = re.compile(r"EU", re.IGNORECASE)
_ADULT = re.compile(r"FOR ADULTS", re.IGNORECASE)


@dataclass(frozen=True)
class GroupClassification:
    location_code: str
    group_title: str


def classify_group_title(original: Optional[str]) -> GroupClassification:
    """Derive ``(location_code, group_title)`` from a raw ``group-title``.

    Rules are tried in order and the first match wins:

    1. ``XX|title`` and ``XX - title`` take the two-letter prefix as the code.
    2. Known region names at the start of the title (``GERMANY ...``).
    3. ``PT/BR - title`` -> ``BR``, ``WT|title`` -> ``WW``.
    4. ``MENA`` anywhere -> ``AR``; ``EU`` anywhere -> ``EU``.
    5. Arabic script -> ``AR``.
    6. ``FOR ADULTS`` -> ``XXX``.
    7. Streaming-brand keywords -> ``WW``; anything else -> ``OTHER``.
    """

    original = original or ""
    upper = original.upper()
    code: Optional[str] = None
    cleaned = original

    match = _PREFIX_PIPE.match(original) or _PREFIX_DASH.match(original)
    if match:
        code, cleaned = match.group(1), match.group(2).strip()

    if code is None:
        for name, mapped in LOCATION_MAPPINGS.items():
            if upper.startswith(name + " "):
                code = mapped
                cleaned = original[len(name):].strip()
                if cleaned.startswith("-"):
                    cleaned = cleaned[1:].strip()
                break

    if code is None:
        match = _PT_BR.match(original)
        if match:
            code, cleaned = "BR", match.group(1).strip()
    if code is None:
        match = _WT_PIPE.match(original)
        if match:
            code, cleaned = "WW", match.group(2).strip()
    if code is None and _MENA.search(original):
        code = "AR"
    if code is None and _EU.search(original):
        code = "EU"
    if code is None and _ARABIC.search(original):
        code = "AR"
    if code is None and _ADULT.search(original):
        code = "XXX"
    if code is None and any(keyword in upper for keyword in WORLDWIDE_KEYWORDS):
        code = "WW"
    if code is None:
        code = "OTHER"

    if not cleaned:
        cleaned = original or UNCATEGORIZED
    return GroupClassification(location_code=code, group_title=cleaned)


__all__ = [
    "GroupClassification",
    "LOCATION_MAPPINGS",
    "UNCATEGORIZED",
    "WORLDWIDE_KEYWORDS",
    "classify_group_title",
]
