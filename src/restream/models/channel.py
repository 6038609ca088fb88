"""Catalog entry for a relayable source."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import func

from ..providers import db
from .base import BaseModel


class Channel(BaseModel):
    """A remote stream imported from an M3U playlist."""

    __tablename__ = "channels"

    name = db.Column(db.Text, nullable=False, index=True)
    location_code = db.Column(db.String(16), nullable=True, index=True)
    group_title = db.Column(db.Text, nullable=True, index=True)
    tvg_id = db.Column(db.Text, nullable=True)
    tvg_logo = db.Column(db.Text, nullable=True)
    url = db.Column(db.Text, nullable=False, unique=True)
    parsed_at = db.Column(db.DateTime(timezone=True), nullable=True, server_default=func.now())

    def to_summary(self) -> Dict[str, Any]:
        return {
            "id": int(self.id),
            "name": self.name,
            "groupTitle": self.group_title,
            "tvgId": self.tvg_id,
            "tvgLogo": self.tvg_logo,
            "url": self.url,
        }

    def to_dict(self) -> Dict[str, Any]:
        parsed_at = self.parsed_at if isinstance(self.parsed_at, datetime) else None
        payload = self.to_summary()
        payload["locationCode"] = self.location_code
        payload["parsedAt"] = parsed_at.isoformat() if parsed_at else None
        return payload


__all__ = ["Channel"]
