"""Unit tests for the filesystem entry storage."""

from unittest.mock import patch

import pytest

from extractor.core.exceptions import EntryFileError
from extractor.models.entry import Entry, EntryType
from extractor.services.entry_storage import EntryStorage, FileEntryStorage, get_entry_filename

ENTRY = Entry(id="96b5a2cfe01e2b6f8e3c1b0d2a4f6e8c0b1d3f5a", type=EntryType.IMAGE, filename="a.jpg")


@pytest.fixture
def storage(tmp_path):
    return FileEntryStorage(tmp_path)


def test_entry_filename_layout():
    assert (
        get_entry_filename(ENTRY, "objects.json")
        == "96/b5/a2cfe01e2b6f8e3c1b0d2a4f6e8c0b1d3f5a-objects.json"
    )


def test_implements_protocol(storage):
    assert isinstance(storage, EntryStorage)


@pytest.mark.asyncio
async def test_write_then_read(storage, tmp_path):
    await storage.write_entry_file(ENTRY, "faces.json", b'{"faces":[]}')

    assert storage.has_entry_file(ENTRY, "faces.json")
    assert await storage.read_entry_file(ENTRY, "faces.json") == b'{"faces":[]}'
    assert (tmp_path / "96" / "b5" / "a2cfe01e2b6f8e3c1b0d2a4f6e8c0b1d3f5a-faces.json").is_file()


@pytest.mark.asyncio
async def test_write_leaves_no_temporary_files(storage, tmp_path):
    await storage.write_entry_file(ENTRY, "faces.json", b"{}")

    files = [p.name for p in (tmp_path / "96" / "b5").iterdir()]
    assert files == ["a2cfe01e2b6f8e3c1b0d2a4f6e8c0b1d3f5a-faces.json"]


def test_missing_file(storage):
    assert storage.has_entry_file(ENTRY, "objects.json") is False


@pytest.mark.asyncio
async def test_read_missing_file_raises(storage):
    with pytest.raises(EntryFileError) as exc_info:
        await storage.read_entry_file(ENTRY, "image-preview-800.jpg")

    assert exc_info.value.entry_id == ENTRY.id
    assert exc_info.value.suffix == "image-preview-800.jpg"
    assert isinstance(exc_info.value.original_error, FileNotFoundError)


@pytest.mark.asyncio
async def test_write_failure_raises(storage):
    with (
        patch("pathlib.Path.write_bytes", side_effect=PermissionError(13, "Permission denied")),
        pytest.raises(EntryFileError) as exc_info,
    ):
        await storage.write_entry_file(ENTRY, "objects.json", b"{}")

    assert "Permission denied" in str(exc_info.value)
    assert storage.has_entry_file(ENTRY, "objects.json") is False


def test_directory_is_not_an_entry_file(storage, tmp_path):
    (tmp_path / "96" / "b5" / "a2cfe01e2b6f8e3c1b0d2a4f6e8c0b1d3f5a-objects.json").mkdir(parents=True)

    assert storage.has_entry_file(ENTRY, "objects.json") is False
