"""Command line interface of the extractor.

Usage:
    python -m extractor run INDEX_FILE [--storage-dir DIR] [--metrics-file FILE]
    python -m extractor write-index DIRECTORY INDEX_FILE [--dry-run]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from extractor.core.config import get_settings
from extractor.core.exceptions import ExtractorError
from extractor.core.logging import get_logger, sanitize_error, setup_logging
from extractor.core.metrics import get_metrics_response
from extractor.models.entry import IMAGE_ENTRY_TYPES
from extractor.services.dispatcher import iterate
from extractor.services.entry_storage import FileEntryStorage
from extractor.services.extractor import run_extractor
from extractor.services.index_writer import build_index, entries_from_index, read_index

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extractor",
        description="Enrich catalog entries via the inference api server",
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Enrich the image entries of a file index")
    run_parser.add_argument("index", type=Path, help="Gzip compressed file index")
    run_parser.add_argument("--storage-dir", type=Path, help="Override the storage directory")
    run_parser.add_argument(
        "--metrics-file", type=Path, help="Write Prometheus metrics to this file when done"
    )

    index_parser = subparsers.add_parser("write-index", help="Write the file index of a directory")
    index_parser.add_argument("directory", type=Path, help="Catalog root directory")
    index_parser.add_argument("index", type=Path, help="Target index file")
    index_parser.add_argument(
        "--dry-run", action="store_true", help="Print the index instead of writing it"
    )
    return parser


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    storage = FileEntryStorage(args.storage_dir or settings.storage_dir)

    index = await read_index(args.index)
    entries = [entry for entry in entries_from_index(index) if entry.type in IMAGE_ENTRY_TYPES]
    logger.info(f"Read {len(entries)} image entries from {args.index}")

    await run_extractor(iterate(entries), storage, settings)

    if args.metrics_file:
        args.metrics_file.write_bytes(get_metrics_response())
    return 0


async def _write_index(args: argparse.Namespace) -> int:
    index = await build_index(args.directory, args.index, dry_run=args.dry_run)
    if args.dry_run:
        json.dump(index, sys.stdout, indent=2)
        sys.stdout.write("\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level.upper()})
    setup_logging(settings)

    command = _run if args.command == "run" else _write_index
    try:
        return asyncio.run(command(args))
    except (ExtractorError, OSError) as e:
        logger.error(f"{args.command} failed: {sanitize_error(e)}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
