"""Load parsed playlist entries into the channel catalog."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Set

from sqlalchemy import delete, select

from ..models import Channel
from ..providers import db
from .groups import UNCATEGORIZED, classify_group_title
from .m3u import PlaylistEntry

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5000


@dataclass
class IngestReport:
    parsed: int = 0
    inserted: int = 0
    skipped_missing: int = 0
    skipped_duplicate: int = 0


def replace_catalog(entries: Iterable[PlaylistEntry], *, batch_size: int = DEFAULT_BATCH_SIZE) -> IngestReport:
    """Clear the ``channels`` table and insert ``entries`` in batches.

    Entries without a URL are skipped, as are repeated URLs after the first.
    Must run inside an application context.
    """

    batch_size = max(1, int(batch_size))
    report = IngestReport()
    seen: Set[str] = set()
    rows: List[Channel] = []

    for entry in entries:
        report.parsed += 1
        if not entry.url:
            report.skipped_missing += 1
            continue
        if entry.url in seen:
            report.skipped_duplicate += 1
            continue
        seen.add(entry.url)
        group = classify_group_title(entry.group_title or UNCATEGORIZED)
        rows.append(
            Channel(
                name=entry.name or "Unknown",
                location_code=group.location_code,
                group_title=group.group_title,
                tvg_id=entry.tvg_id,
                tvg_logo=entry.tvg_logo,
                url=entry.url,
            )
        )

    LOGGER.info("Clearing existing channels table")
    db.session.execute(delete(Channel))
    db.session.commit()

    total_batches = (len(rows) + batch_size - 1) // batch_size
    for index in range(0, len(rows), batch_size):
        batch = rows[index:index + batch_size]
        LOGGER.info(
            "Inserting batch %d of %d (size %d)", index // batch_size + 1, total_batches, len(batch)
        )
        Channel.bulk_create(batch)
        report.inserted += len(batch)

    LOGGER.info(
        "Catalog load complete: parsed=%d inserted=%d missing=%d duplicate=%d",
        report.parsed,
        report.inserted,
        report.skipped_missing,
        report.skipped_duplicate,
    )
    return report


def reclassify_catalog(*, batch_size: int = DEFAULT_BATCH_SIZE) -> int:
    """Re-run group classification over stored channels. Returns rows updated."""

    batch_size = max(1, int(batch_size))
    updated = 0
    last_id = 0
    while True:
        stmt = select(Channel).where(Channel.id > last_id).order_by(Channel.id.asc()).limit(batch_size)
        channels = list(db.session.scalars(stmt))
        if not channels:
            break
        for channel in channels:
            group = classify_group_title(channel.group_title)
            channel.location_code = group.location_code
            channel.group_title = group.group_title
            updated += 1
        last_id = channels[-1].id
        db.session.commit()
        LOGGER.info("Reclassified %d channel(s) so far", updated)
    return updated


__all__ = ["DEFAULT_BATCH_SIZE", "IngestReport", "reclassify_catalog", "replace_catalog"]
