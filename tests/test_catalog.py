from pathlib import Path

import pytest

from restream.app import create_app
from restream.ingest import classify_group_title, extract_attributes, parse_m3u, reclassify_catalog, replace_catalog
from restream.models import Channel
from restream.providers import db

PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-id="daserste.de" tvg-logo="http://logo.example/ard.png" group-title="DE| NEWS",Das Erste HD
http://iptv.example/1.ts
#EXTINF:-1 tvg-name="Arte FR" group-title="FRANCE - Culture",Arte
http://iptv.example/2.ts
#EXTINF:-1 group-title="NETFLIX Movies",Stranger Things 24/7
http://iptv.example/3.ts
#EXTINF:-1,No Group, Channel
http://iptv.example/4.ts
#EXTINF:-1 group-title="DE| NEWS",Duplicate
http://iptv.example/1.ts
"""


@pytest.fixture()
def app(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in ("RESTREAM_WORKER_PROCESSES", "GUNICORN_WORKERS", "WEB_CONCURRENCY", "RESTREAM_STATUS_REDIS_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RESTREAM_OUTPUT_DIR", str(tmp_path / "stream_data"))
    monkeypatch.setenv("RESTREAM_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("RESTREAM_DATABASE_URL", f"sqlite:///{tmp_path / 'catalog.db'}")
    application = create_app({"TESTING": True})
    yield application
    with application.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture()
def playlist_file(tmp_path: Path) -> Path:
    path = tmp_path / "channels.m3u"
    path.write_text(PLAYLIST, encoding="utf-8")
    return path


@pytest.fixture()
def loaded_app(app, playlist_file):
    with app.app_context():
        replace_catalog(parse_m3u(playlist_file))
    return app


@pytest.mark.parametrize(
    ("raw", "code", "title"),
    [
        ("DE| NEWS", "DE", "NEWS"),
        ("UK - Sports", "UK", "Sports"),
        ("GERMANY - Sport", "DE", "Sport"),
        ("SOUTH AFRICA Movies", "ZA", "Movies"),
        ("PT/BR - Novelas", "BR", "Novelas"),
        ("MENA Sports", "AR", "MENA Sports"),
        ("EUROSPORT", "EU", "EUROSPORT"),
        ("قنوات عربية", "AR", "قنوات عربية"),
        ("FOR ADULTS ONLY", "XXX", "FOR ADULTS ONLY"),
        ("Disney+ Kids", "WW", "Disney+ Kids"),
        ("Random", "OTHER", "Random"),
        ("", "OTHER", "Uncategorized"),
        (None, "OTHER", "Uncategorized"),
    ],
)
def test_classify_group_title(raw, code, title) -> None:
    result = classify_group_title(raw)

    assert result.location_code == code
    assert result.group_title == title


def test_extract_attributes_prefers_tvg_name() -> None:
    attrs = extract_attributes('#EXTINF:-1 tvg-name="Arte FR" TVG-ID=\'arte\' group-title="X",Arte')

    assert attrs["name"] == "Arte FR"
    assert attrs["tvg-id"] == "arte"
    assert attrs["group-title"] == "X"


def test_extract_attributes_uses_text_after_last_comma() -> None:
    assert extract_attributes("#EXTINF:-1,No Group, Channel")["name"] == "Channel"
    assert extract_attributes("#EXTINF:-1")["name"] == "Unknown"


def test_parse_m3u_pairs_extinf_with_uri(playlist_file: Path) -> None:
    entries = parse_m3u(playlist_file)

    assert len(entries) == 5
    assert entries[0].name == "Das Erste HD"
    assert entries[0].tvg_id == "daserste.de"
    assert entries[0].tvg_logo == "http://logo.example/ard.png"
    assert entries[0].group_title == "DE| NEWS"
    assert entries[3].group_title is None


def test_replace_catalog_skips_duplicate_urls(app, playlist_file: Path) -> None:
    with app.app_context():
        report = replace_catalog(parse_m3u(playlist_file), batch_size=2)
        rows = db.session.scalars(db.select(Channel).order_by(Channel.url)).all()

    assert report.parsed == 5
    assert report.inserted == 4
    assert report.skipped_duplicate == 1
    assert [row.url for row in rows] == [f"http://iptv.example/{n}.ts" for n in range(1, 5)]
    uncategorized = [row for row in rows if row.url.endswith("/4.ts")][0]
    assert uncategorized.group_title == "Uncategorized"
    assert uncategorized.location_code == "OTHER"


def test_replace_catalog_clears_previous_rows(app, playlist_file: Path) -> None:
    with app.app_context():
        replace_catalog(parse_m3u(playlist_file))
        replace_catalog(parse_m3u(playlist_file)[:1])
        count = db.session.scalar(db.select(db.func.count(Channel.id)))

    assert count == 1


def test_reclassify_updates_location_codes(app) -> None:
    with app.app_context():
        Channel.bulk_create([Channel(name="X", group_title="GERMANY Sport", url="http://iptv.example/x.ts")])
        assert reclassify_catalog(batch_size=1) == 1
        channel = db.session.scalars(db.select(Channel)).one()
        assert channel.location_code == "DE"
        assert channel.group_title == "Sport"


def test_list_channels_paginates(loaded_app) -> None:
    payload = loaded_app.test_client().get("/api/channels?page=1&limit=2").get_json()

    assert len(payload["data"]) == 2
    assert payload["pagination"] == {"totalItems": 4, "totalPages": 2, "currentPage": 1, "pageSize": 2}
    assert [item["name"] for item in payload["data"]] == ["Arte FR", "Channel"]


def test_list_channels_filters(loaded_app) -> None:
    client = loaded_app.test_client()

    by_group = client.get("/api/channels?group=NEWS").get_json()
    by_search = client.get("/api/channels?search=erste").get_json()
    by_location = client.get("/api/channels?languageGroupPrefixes=fr,ww").get_json()

    assert [item["name"] for item in by_group["data"]] == ["Das Erste HD"]
    assert [item["name"] for item in by_search["data"]] == ["Das Erste HD"]
    assert sorted(item["name"] for item in by_location["data"]) == ["Arte FR", "Stranger Things 24/7"]


@pytest.mark.parametrize("query", ["page=0", "limit=-5", "page=abc"])
def test_list_channels_rejects_non_positive_paging(loaded_app, query: str) -> None:
    response = loaded_app.test_client().get(f"/api/channels?{query}")

    assert response.status_code == 400


def test_list_groups_is_sorted_and_distinct(loaded_app) -> None:
    groups = loaded_app.test_client().get("/api/channels/groups").get_json()

    assert groups == sorted(set(groups))
    assert "NEWS" in groups
    assert "Culture" in groups


def test_get_channel(loaded_app) -> None:
    client = loaded_app.test_client()
    with loaded_app.app_context():
        channel_id = db.session.scalars(db.select(Channel.id).where(Channel.name == "Arte FR")).one()

    found = client.get(f"/api/channels/{channel_id}")
    missing = client.get("/api/channels/99999")
    invalid = client.get("/api/channels/abc")

    assert found.status_code == 200
    assert found.get_json()["locationCode"] == "FR"
    assert missing.status_code == 404
    assert invalid.status_code == 400
