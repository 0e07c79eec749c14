"""Async wrappers for blocking file operations.

Local file reads and writes run in the default executor so that a slow disk
suspends only the awaiting task, never the event loop.

Usage:
    from extractor.core.async_utils import async_read_bytes, async_write_bytes

    data = await async_read_bytes(path)
    await async_write_bytes(path, data)
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path


async def async_read_bytes(path: str | Path) -> bytes:
    """Read file bytes asynchronously without blocking.

    Args:
        path: Path to the file

    Returns:
        File contents as bytes

    Raises:
        OSError: If the file cannot be read
    """

    def _read() -> bytes:
        return Path(path).read_bytes()

    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _read)


async def async_write_bytes(path: str | Path, content: bytes) -> None:
    """Write bytes to file asynchronously without blocking.

    Parent directories are created as needed. The content is written to a
    temporary sibling file first and renamed into place, so readers never
    observe a partially written file.

    Args:
        path: Path to the file
        content: Bytes to write

    Raises:
        OSError: If the file cannot be written
    """

    def _write() -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".{target.name}.{os.getpid()}.tmp")
        try:
            tmp.write_bytes(content)
            os.replace(tmp, target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _write)
