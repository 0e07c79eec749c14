"""File index reading and writing.

A file index describes the files of a catalog directory tree. It is stored as
gzip compressed JSON:

    {
        "type": "home-gallery/fileindex@1.0",
        "created": "2026-10-16T10:00:00.000000+00:00",
        "base": "/absolute/catalog/root",
        "data": [
            {"filename": "2024/summer/IMG_0001.jpg", "size": 123, "sha1sum": "..."},
            ...
        ]
    }

Index entries are sorted by directory descending, then file name ascending.
"""

from __future__ import annotations

import asyncio
import gzip
import hashlib
import json
import os
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Any

from extractor.core.async_utils import async_read_bytes, async_write_bytes
from extractor.core.exceptions import IndexFormatError
from extractor.core.logging import get_logger
from extractor.models.entry import Entry, entry_type_from_filename

logger = get_logger(__name__)

INDEX_TYPE = "home-gallery/fileindex@1.0"

_HASH_CHUNK_SIZE = 1024 * 1024


def sort_by_dir_desc_file_asc(entries: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort index entries by directory descending, then file name ascending."""
    by_file = sorted(entries, key=lambda e: PurePosixPath(e["filename"]).name)
    return sorted(by_file, key=lambda e: str(PurePosixPath(e["filename"]).parent), reverse=True)


def _sha1sum(path: Path) -> str:
    digest = hashlib.sha1()  # noqa: S324 - content checksum, not security related
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def scan_directory(directory: str | Path) -> list[dict[str, Any]]:
    """Collect the index entries of all regular files below a directory.

    Hidden files and directories are skipped. Runs blocking I/O; call it via
    an executor from async code.
    """
    base = Path(directory)
    entries: list[dict[str, Any]] = []
    for root, dirs, files in os.walk(base):
        dirs[:] = [d for d in dirs if not d.startswith(".")]
        for name in files:
            if name.startswith("."):
                continue
            path = Path(root) / name
            try:
                stat = path.stat()
                sha1sum = _sha1sum(path)
            except OSError as e:
                logger.warning(f"Could not index file {path}: {e}")
                continue
            entries.append(
                {
                    "filename": path.relative_to(base).as_posix(),
                    "size": stat.st_size,
                    "mtime": datetime.fromtimestamp(stat.st_mtime, UTC).isoformat(),
                    "sha1sum": sha1sum,
                }
            )
    return entries


async def write_index(
    directory: str | Path,
    filename: str | Path,
    entries: list[dict[str, Any]],
    *,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Write a file index as gzip compressed JSON.

    Args:
        directory: Catalog root the entry filenames are relative to
        filename: Target index file
        entries: Index entries, each with at least a "filename" key
        dry_run: Build and return the index without writing it

    Returns:
        The index structure
    """
    index = {
        "type": INDEX_TYPE,
        "created": datetime.now(UTC).isoformat(),
        "base": str(Path(directory).resolve()),
        "data": sort_by_dir_desc_file_asc(entries),
    }
    if dry_run:
        logger.info(f"Dry run. Skip writing index {filename} with {len(entries)} entries")
        return index

    content = gzip.compress(json.dumps(index).encode("utf-8"))
    await async_write_bytes(filename, content)
    logger.info(f"Wrote index {filename} with {len(entries)} entries")
    return index


async def read_index(filename: str | Path) -> dict[str, Any]:
    """Read a gzip compressed file index.

    Raises:
        IndexFormatError: If the file is not a valid file index
    """
    content = await async_read_bytes(filename)
    try:
        index = json.loads(gzip.decompress(content))
    except (OSError, EOFError, ValueError) as e:
        raise IndexFormatError(f"Could not parse index {filename}: {e}") from e

    if not isinstance(index, dict) or index.get("type") != INDEX_TYPE:
        raise IndexFormatError(
            f"Unsupported index type in {filename}",
            details={"type": index.get("type") if isinstance(index, dict) else None},
        )
    if not isinstance(index.get("data"), list):
        raise IndexFormatError(f"Index {filename} has no data list")
    return index


def entries_from_index(index: dict[str, Any]) -> Iterator[Entry]:
    """Create catalog entries from the checksummed files of an index.

    Raises:
        IndexFormatError: If an index item is not a valid file record
    """
    for position, item in enumerate(index["data"]):
        if not isinstance(item, dict):
            raise IndexFormatError(
                f"Index item {position} is not an object",
                details={"position": position},
            )
        sha1sum = item.get("sha1sum")
        filename = item.get("filename")
        if not sha1sum or not filename or item.get("isDirectory"):
            continue
        if not isinstance(sha1sum, str) or not isinstance(filename, str):
            raise IndexFormatError(
                f"Index item {position} has an invalid checksum or filename",
                details={"position": position},
            )
        path = PurePosixPath(filename)
        parent = str(path.parent)
        try:
            entry = Entry(
                id=sha1sum,
                type=entry_type_from_filename(filename),
                filename=path.name,
                directory="" if parent == "." else parent,
                size=item.get("size", 0),
            )
        except ValueError as e:
            raise IndexFormatError(
                f"Index item {position} is not a valid entry: {e}",
                details={"position": position, "filename": filename},
            ) from e
        yield entry


async def build_index(
    directory: str | Path, filename: str | Path, *, dry_run: bool = False
) -> dict[str, Any]:
    """Scan a directory tree and write its file index."""
    loop = asyncio.get_running_loop()
    entries = await loop.run_in_executor(None, scan_directory, directory)
    return await write_index(directory, filename, entries, dry_run=dry_run)
