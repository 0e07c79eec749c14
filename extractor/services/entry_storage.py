"""Entry storage for derived artifacts.

Each entry owns a set of artifact files, addressed by a logical suffix such
as ``image-preview-800.jpg`` or ``objects.json``. The filesystem storage
spreads entries over two levels of directories derived from the entry id:

    <storage_dir>/<id[0:2]>/<id[2:4]>/<id[4:]>-<suffix>

The storage is safe for concurrent access to different entries. There is no
cross-entry ordering or transactional guarantee.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from extractor.core.async_utils import async_read_bytes, async_write_bytes
from extractor.core.exceptions import EntryFileError
from extractor.core.logging import get_logger
from extractor.models.entry import Entry

logger = get_logger(__name__)


@runtime_checkable
class EntryStorage(Protocol):
    """Protocol for per-entry artifact access keyed by suffix."""

    def has_entry_file(self, entry: Entry, suffix: str) -> bool:
        """Check whether the artifact exists for the entry."""
        ...

    async def read_entry_file(self, entry: Entry, suffix: str) -> bytes:
        """Read the artifact bytes. Raises EntryFileError on failure."""
        ...

    async def write_entry_file(self, entry: Entry, suffix: str, data: bytes) -> None:
        """Write the artifact bytes. Raises EntryFileError on failure."""
        ...


def get_entry_filename(entry: Entry, suffix: str) -> str:
    """Get the storage relative filename of an entry artifact."""
    return f"{entry.id[:2]}/{entry.id[2:4]}/{entry.id[4:]}-{suffix}"


class FileEntryStorage:
    """Filesystem backed entry storage."""

    def __init__(self, storage_dir: str | Path) -> None:
        self._storage_dir = Path(storage_dir)

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def get_entry_path(self, entry: Entry, suffix: str) -> Path:
        return self._storage_dir / get_entry_filename(entry, suffix)

    def has_entry_file(self, entry: Entry, suffix: str) -> bool:
        return self.get_entry_path(entry, suffix).is_file()

    async def read_entry_file(self, entry: Entry, suffix: str) -> bytes:
        path = self.get_entry_path(entry, suffix)
        try:
            return await async_read_bytes(path)
        except OSError as e:
            raise EntryFileError(
                f"Could not read entry file {suffix} of {entry}: {e.strerror or e}",
                entry_id=entry.id,
                suffix=suffix,
                original_error=e,
            ) from e

    async def write_entry_file(self, entry: Entry, suffix: str, data: bytes) -> None:
        path = self.get_entry_path(entry, suffix)
        try:
            await async_write_bytes(path, data)
        except OSError as e:
            raise EntryFileError(
                f"Could not write entry file {suffix} of {entry}: {e.strerror or e}",
                entry_id=entry.id,
                suffix=suffix,
                original_error=e,
            ) from e
        logger.debug(f"Wrote entry file {suffix} of {entry} ({len(data)} bytes)")
