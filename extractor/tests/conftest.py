"""Pytest configuration and shared fixtures.

This module provides shared test fixtures for all extractor tests:
- isolated_settings: Clean settings cache and environment
- memory_storage: In-memory entry storage with injectable failures
- make_entry: Factory for catalog entries with unique ids
"""

from __future__ import annotations

import hashlib
import itertools
from collections.abc import Callable

import pytest

from extractor.core.config import get_settings
from extractor.core.exceptions import EntryFileError
from extractor.models.entry import Entry, EntryType

_SETTINGS_ENV_VARS = [
    "STORAGE_DIR",
    "IMAGE_PREVIEW_SIZES",
    "API_SERVER__URL",
    "API_SERVER__CONCURRENT",
    "API_SERVER__TIMEOUT",
    "API_SERVER__DISABLE",
    "LOG_LEVEL",
    "LOG_JSON",
]


class InMemoryEntryStorage:
    """Entry storage keeping artifacts in a dict.

    Reads and writes of suffixes listed in ``fail_reads`` / ``fail_writes``
    raise EntryFileError, mimicking local storage failures.
    """

    def __init__(self) -> None:
        self.files: dict[tuple[str, str], bytes] = {}
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.writes: list[tuple[str, str]] = []

    def add(self, entry: Entry, suffix: str, data: bytes = b"\xff\xd8preview") -> None:
        self.files[(entry.id, suffix)] = data

    def get(self, entry: Entry, suffix: str) -> bytes | None:
        return self.files.get((entry.id, suffix))

    def has_entry_file(self, entry: Entry, suffix: str) -> bool:
        return (entry.id, suffix) in self.files

    async def read_entry_file(self, entry: Entry, suffix: str) -> bytes:
        if suffix in self.fail_reads or (entry.id, suffix) not in self.files:
            raise EntryFileError(
                f"Could not read entry file {suffix} of {entry}", entry_id=entry.id, suffix=suffix
            )
        return self.files[(entry.id, suffix)]

    async def write_entry_file(self, entry: Entry, suffix: str, data: bytes) -> None:
        if suffix in self.fail_writes:
            raise EntryFileError(
                f"Could not write entry file {suffix} of {entry}", entry_id=entry.id, suffix=suffix
            )
        self.files[(entry.id, suffix)] = data
        self.writes.append((entry.id, suffix))


@pytest.fixture
def isolated_settings(monkeypatch, tmp_path):
    """Clear settings-related environment variables and the settings cache."""
    for var in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("LOG_FILE_PATH", str(tmp_path / "logs" / "extractor.log"))
    monkeypatch.setenv("EXTRACTOR_RUNTIME_ENV_PATH", str(tmp_path / "runtime.env"))
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def memory_storage() -> InMemoryEntryStorage:
    return InMemoryEntryStorage()


@pytest.fixture
def make_entry() -> Callable[..., Entry]:
    """Factory creating entries with distinct checksum ids."""
    counter = itertools.count()

    def _make_entry(
        entry_type: EntryType = EntryType.IMAGE, filename: str | None = None
    ) -> Entry:
        n = next(counter)
        return Entry(
            id=hashlib.sha1(f"entry-{n}".encode()).hexdigest(),  # noqa: S324
            type=entry_type,
            filename=filename or f"IMG_{n:04d}.jpg",
            directory="2024/summer",
            size=1024 + n,
        )

    return _make_entry
