"""Catalog entry model.

An entry is one media item of the catalog. It is identified by the checksum
of its content and classified by type. Entries flow unchanged through the
extractor stages; derived artifacts are attached via the entry storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath


class EntryType(str, Enum):
    """Media type classifier of an entry."""

    IMAGE = "image"
    RAW_IMAGE = "rawImage"
    VIDEO = "video"
    META = "meta"
    UNKNOWN = "unknown"


# Entry types that can be sent to the inference api
IMAGE_ENTRY_TYPES = frozenset({EntryType.IMAGE, EntryType.RAW_IMAGE})

_EXTENSION_TYPES: dict[str, EntryType] = {
    **dict.fromkeys((".jpg", ".jpeg", ".png", ".webp", ".heic", ".gif", ".tif", ".tiff"), EntryType.IMAGE),
    **dict.fromkeys((".cr2", ".cr3", ".nef", ".arw", ".dng", ".orf", ".rw2", ".raf"), EntryType.RAW_IMAGE),
    **dict.fromkeys((".mp4", ".mov", ".avi", ".mkv", ".m4v", ".3gp"), EntryType.VIDEO),
    **dict.fromkeys((".xmp", ".json"), EntryType.META),
}


def entry_type_from_filename(filename: str) -> EntryType:
    """Classify a file by its extension (case insensitive)."""
    return _EXTENSION_TYPES.get(PurePosixPath(filename).suffix.lower(), EntryType.UNKNOWN)


@dataclass(frozen=True, slots=True)
class Entry:
    """A single catalog item.

    Attributes:
        id: Hex checksum of the file content (at least 5 characters)
        type: Media type classifier
        filename: File name relative to its directory
        directory: Directory relative to the catalog root
        size: File size in bytes
    """

    id: str
    type: EntryType
    filename: str = ""
    directory: str = ""
    size: int = 0

    def __post_init__(self) -> None:
        if len(self.id) < 5:
            raise ValueError(f"Entry id is too short: {self.id!r}")

    def __str__(self) -> str:
        path = f"{self.directory}/{self.filename}" if self.directory else self.filename
        return f"{self.id[:7]}:{self.type.value}:{path}"
