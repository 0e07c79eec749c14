"""Composition of the api server extractor stages."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator

from extractor.core.config import Settings
from extractor.core.logging import get_logger
from extractor.models.entry import Entry
from extractor.services.api_features import (
    face_detection,
    log_public_api_privacy_hint,
    object_detection,
    similar_embeddings,
)
from extractor.services.dispatcher import Stage, pipe
from extractor.services.entry_storage import EntryStorage

logger = get_logger(__name__)


def api_server_stages(storage: EntryStorage, settings: Settings) -> list[Stage]:
    """Create the privacy notice and feature stages in processing order."""
    return [
        log_public_api_privacy_hint(settings),
        similar_embeddings(storage, settings),
        object_detection(storage, settings),
        face_detection(storage, settings),
    ]


def extract(
    entries: AsyncIterable[Entry], storage: EntryStorage, settings: Settings
) -> AsyncIterator[Entry]:
    """Run all api server stages over an entry stream."""
    return pipe(entries, *api_server_stages(storage, settings))


async def run_extractor(
    entries: AsyncIterable[Entry], storage: EntryStorage, settings: Settings
) -> int:
    """Consume the extractor stream and return the number of processed entries."""
    count = 0
    async for _ in extract(entries, storage, settings):
        count += 1
    logger.info(f"Processed {count} entries")
    return count
