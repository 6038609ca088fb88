"""Catalog browsing endpoints."""
from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ..services.catalog import DEFAULT_PAGE_SIZE, CatalogService, ChannelQuery
from ..utils import coerce_int, parse_positive_int, to_optional_str

CHANNELS_BLUEPRINT = Blueprint("channels", __name__, url_prefix="/api/channels")


def _service() -> CatalogService:
    svc: CatalogService = current_app.extensions["catalog_service"]
    return svc


def _paging_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return default
    return coerce_int(raw.strip(), 0)


@CHANNELS_BLUEPRINT.get("")
@CHANNELS_BLUEPRINT.get("/")
def list_channels() -> Any:
    page = _paging_arg("page", 1)
    limit = _paging_arg("limit", DEFAULT_PAGE_SIZE)
    if page <= 0 or limit <= 0:
        return jsonify({"error": "Page and limit must be positive integers."}), HTTPStatus.BAD_REQUEST

    query = ChannelQuery(
        page=page,
        limit=limit,
        group=to_optional_str(request.args.get("group")),
        search=to_optional_str(request.args.get("search")),
        location_codes=tuple(ChannelQuery.parse_location_codes(request.args.get("languageGroupPrefixes"))),
    )
    return jsonify(_service().list_channels(query)), HTTPStatus.OK


@CHANNELS_BLUEPRINT.get("/groups")
def list_groups() -> Any:
    return jsonify(_service().list_groups()), HTTPStatus.OK


@CHANNELS_BLUEPRINT.get("/<channel_id>")
def get_channel(channel_id: str) -> Any:
    parsed = parse_positive_int(channel_id)
    if parsed is None:
        return jsonify({"error": "Invalid channel id."}), HTTPStatus.BAD_REQUEST
    channel = _service().get_channel(parsed)
    if channel is None:
        return jsonify({"error": "Channel not found."}), HTTPStatus.NOT_FOUND
    return jsonify(channel.to_dict()), HTTPStatus.OK


__all__ = ["CHANNELS_BLUEPRINT"]
