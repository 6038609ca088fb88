"""Command line entrypoint that imports an M3U playlist into the catalog."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from ..app import create_app
from .loader import DEFAULT_BATCH_SIZE, reclassify_catalog, replace_catalog
from .m3u import parse_m3u

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replace the channel catalog with the entries of an extended M3U playlist.",
    )
    parser.add_argument(
        "playlist",
        nargs="?",
        help="Path to the .m3u playlist to import.",
    )
    parser.add_argument(
        "--reclassify",
        action="store_true",
        help="Re-run group classification over stored channels instead of importing.",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Rows per insert batch (default: {DEFAULT_BATCH_SIZE}).",
    )
    args = parser.parse_args(argv)
    if not args.reclassify and not args.playlist:
        parser.error("a playlist path is required unless --reclassify is given")
    return args


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    app = create_app()

    with app.app_context():
        if args.reclassify:
            updated = reclassify_catalog(batch_size=args.batch_size)
            print(f"Reclassified {updated:,} channel(s)")
            return

        playlist = Path(args.playlist).expanduser().resolve()
        if not playlist.is_file():
            raise SystemExit(f"M3U file not found: {playlist}")
        entries = parse_m3u(playlist)
        if not entries:
            LOGGER.warning("No channels found in %s", playlist)
        report = replace_catalog(entries, batch_size=args.batch_size)

    print(f"Parsed: {report.parsed:,}")
    print(f"Inserted: {report.inserted:,}")
    print(f"Skipped (missing URL): {report.skipped_missing:,}")
    print(f"Skipped (duplicate URL): {report.skipped_duplicate:,}")


if __name__ == "__main__":
    main()
