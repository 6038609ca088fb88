"""Read access to the channel catalog."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, select

from ..providers import db
from ..models import Channel

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class ChannelQuery:
    """Filters accepted by :meth:`CatalogService.list_channels`."""

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    group: Optional[str] = None
    search: Optional[str] = None
    location_codes: Sequence[str] = field(default_factory=tuple)

    @staticmethod
    def parse_location_codes(raw: Optional[str]) -> List[str]:
        if not raw:
            return []
        return [code.strip().upper() for code in raw.split(",") if code.strip()]


class CatalogService:
    """Lookups against the ``channels`` table.

    Must be used inside a Flask application context.
    """

    def lookup_source_address(self, source_id: int) -> Optional[str]:
        channel = Channel.get(source_id)
        if channel is None:
            logger.info("Catalog has no channel with id %s", source_id)
            return None
        return channel.url

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        return Channel.get(channel_id)

    def list_groups(self) -> List[str]:
        stmt = (
            select(Channel.group_title)
            .where(Channel.group_title.is_not(None), Channel.group_title != "")
            .distinct()
            .order_by(Channel.group_title.asc())
        )
        return [row for row in db.session.scalars(stmt)]

    def list_channels(self, query: ChannelQuery) -> Dict[str, Any]:
        conditions = []
        if query.group:
            conditions.append(Channel.group_title == query.group)
        if query.search:
            conditions.append(Channel.name.ilike(f"%{query.search}%"))
        if query.location_codes:
            conditions.append(Channel.location_code.in_(list(query.location_codes)))

        offset = (query.page - 1) * query.limit
        items_stmt = (
            select(Channel)
            .where(*conditions)
            .order_by(Channel.name.asc(), Channel.id.asc())
            .limit(query.limit)
            .offset(offset)
        )
        count_stmt = select(func.count(Channel.id)).where(*conditions)

        channels = list(db.session.scalars(items_stmt))
        total = int(db.session.scalar(count_stmt) or 0)
        return {
            "data": [channel.to_summary() for channel in channels],
            "pagination": {
                "totalItems": total,
                "totalPages": math.ceil(total / query.limit) if query.limit else 0,
                "currentPage": query.page,
                "pageSize": query.limit,
            },
        }


__all__ = ["CatalogService", "ChannelQuery", "DEFAULT_PAGE_SIZE"]
