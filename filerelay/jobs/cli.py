"""
CLI entrypoint for an offline sweep of the upload directory.

Metadata lives only in the server's memory, so this removes every code
directory older than the resource TTL by modification time. Safe to run
while the server is up: a directory that old can no longer be downloaded.
"""

from __future__ import annotations

import argparse
import logging

from filerelay.config.logging_config import setup_logging
from filerelay.config.settings import get_settings
from filerelay.errors import StorageFailure
from filerelay.storage.file_store import FileStore


def build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(description="Delete expired upload directories.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List what would be deleted without deleting it.",
    )
    return parser


def main() -> int:
    """Run the offline sweep and print a summary."""
    args = build_parser().parse_args()

    settings = get_settings()
    setup_logging(log_dir=settings.logs_dir)
    logger = logging.getLogger(__name__)

    file_store = FileStore(settings.uploads_dir)
    stale = file_store.stale_codes(settings.relay.resource_ttl)

    deleted = 0
    failed = 0
    for code in stale:
        if args.dry_run:
            print(f"would delete {code}")
            continue
        try:
            if file_store.delete(code):
                deleted += 1
        except StorageFailure as exc:
            failed += 1
            logger.error("Failed to delete %s: %s", code, exc)

    print(f"stale={len(stale)} deleted={deleted} failed={failed}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
