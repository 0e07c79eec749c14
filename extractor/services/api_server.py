"""Inference API enrichment of catalog entries.

Sends the image preview of an entry to a remote inference API and stores the
JSON response as an entry artifact. One stage is built per feature
(similarity embeddings, object detection, face detection), each with its own
error budget.

Enrichment Flow:
    1. Test the entry: budget not tripped, preview present, result absent,
       entry is an image or raw image
    2. Read the first available image preview from the entry storage
    3. POST the raw preview bytes to {api_server_url}{api_path}
    4. Write the response body verbatim as the entry artifact

Error Handling:
    - Preview read errors: Log warning, skip entry (error budget untouched)
    - Connection errors/timeouts: Log warning, record failure, skip entry
    - HTTP status outside [100, 300): Log error, record failure, skip entry
    - Artifact write errors: Log warning, skip entry (error budget untouched)

    Local storage errors are not attributed to the health of the remote api.
    No request is retried; every failure is terminal for its entry only.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterable, AsyncIterator, Sequence
from dataclasses import dataclass

import httpx

from extractor.core.exceptions import EntryFileError
from extractor.core.logging import get_logger, sanitize_error
from extractor.core.metrics import (
    observe_api_request_duration,
    record_api_request,
    record_entry_dispatched,
)
from extractor.models.entry import IMAGE_ENTRY_TYPES, Entry
from extractor.services.dispatcher import Stage, bounded_dispatch
from extractor.services.entry_storage import EntryStorage
from extractor.services.error_budget import ErrorBudget
from extractor.services.image_preview import preview_content_type

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Configuration of one inference API feature.

    Attributes:
        name: Human readable feature name used in logs and metrics
        api_server_url: Base URL of the api server
        api_path: Feature endpoint path, appended to the base URL
        image_preview_suffixes: Acceptable input previews in order of preference
        entry_suffix: Suffix of the stored api response
        concurrent: Maximum number of concurrent requests
        timeout: Timeout of a single request in seconds
    """

    name: str
    api_server_url: str
    api_path: str
    image_preview_suffixes: tuple[str, ...]
    entry_suffix: str
    concurrent: int = 5
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.concurrent < 1:
            raise ValueError(f"concurrent must be at least 1, got {self.concurrent}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @property
    def url(self) -> str:
        return f"{self.api_server_url}{self.api_path}"


def find_entry_file_suffix(
    storage: EntryStorage, entry: Entry, suffixes: Sequence[str]
) -> str | None:
    """Get the first suffix present for the entry, or None."""
    return next((suffix for suffix in suffixes if storage.has_entry_file(entry, suffix)), None)


class EntryEligibility:
    """Decides whether an entry is sent to the api.

    The error budget is checked on every call, so a recovered budget admits
    entries again within the same run.

    The test runs synchronously on the event loop when an entry is pulled.
    With file storage each call costs a few ``stat`` calls (one per preview
    suffix plus the result file), which is cheap next to the api request.
    Only file reads and writes go through the executor.
    """

    def __init__(self, storage: EntryStorage, config: ApiServerConfig, budget: ErrorBudget) -> None:
        self._storage = storage
        self._config = config
        self._budget = budget

    def __call__(self, entry: Entry) -> bool:
        if self._budget.is_tripped:
            return False
        if (
            find_entry_file_suffix(self._storage, entry, self._config.image_preview_suffixes)
            is None
            or self._storage.has_entry_file(entry, self._config.entry_suffix)
        ):
            return False
        return entry.type in IMAGE_ENTRY_TYPES


class EnrichmentTask:
    """Fetches the api response for a single entry and stores it.

    ``run`` never raises for expected failures: local storage errors and
    remote errors are logged and end the task for that entry.
    """

    def __init__(
        self,
        storage: EntryStorage,
        config: ApiServerConfig,
        budget: ErrorBudget,
        client: httpx.AsyncClient,
    ) -> None:
        self._storage = storage
        self._config = config
        self._budget = budget
        self._client = client

    async def run(self, entry: Entry) -> None:
        """Enrich one entry.

        Args:
            entry: Entry that passed the eligibility test
        """
        name = self._config.name
        url = self._config.url
        start_time = time.perf_counter()

        preview_suffix = find_entry_file_suffix(
            self._storage, entry, self._config.image_preview_suffixes
        )
        if preview_suffix is None:
            logger.warning(f"No image preview found for {entry}. Skip {name} for this entry")
            record_api_request(name, "read_error")
            return

        try:
            data = await self._storage.read_entry_file(entry, preview_suffix)
        except EntryFileError as e:
            logger.warning(
                f"Could not read image entry file {preview_suffix} from {entry}: "
                f"{sanitize_error(e)}. Skip {name} for this entry",
                extra={"entry_id": entry.id, "suffix": preview_suffix},
            )
            record_api_request(name, "read_error")
            return

        request_start = time.perf_counter()
        try:
            response = await self._client.post(
                url,
                content=data,
                headers={"Content-Type": preview_content_type(preview_suffix)},
                timeout=httpx.Timeout(self._config.timeout),
            )
        except httpx.RequestError as e:
            self._budget.record_failure()
            record_api_request(name, "transport_error")
            logger.warning(
                f"Could not get {name} of {entry} from URL {url}: {type(e).__name__}: {e}",
                extra={"entry_id": entry.id, "url": url},
            )
            return
        finally:
            observe_api_request_duration(name, time.perf_counter() - request_start)

        status_code = response.status_code
        if status_code < 100 or status_code >= 300:
            self._budget.record_failure()
            record_api_request(name, "http_error")
            logger.error(
                f"Could not get {name} of {entry} from URL {url}: "
                f"HTTP response code is {status_code}",
                extra={"entry_id": entry.id, "url": url, "status_code": status_code},
            )
            return

        try:
            await self._storage.write_entry_file(entry, self._config.entry_suffix, response.content)
        except EntryFileError as e:
            logger.warning(
                f"Could not write {name} of {entry}: {sanitize_error(e)}",
                extra={"entry_id": entry.id, "suffix": self._config.entry_suffix},
            )
            record_api_request(name, "write_error")
            return

        self._budget.record_success()
        record_api_request(name, "success")
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(
            f"Fetched {name} for {entry} in {duration_ms}ms",
            extra={"entry_id": entry.id, "duration_ms": duration_ms},
        )


def api_server_entry(
    storage: EntryStorage,
    config: ApiServerConfig,
    budget: ErrorBudget | None = None,
) -> Stage:
    """Create the enrichment stage for one api feature.

    Each run of the stage creates its own HTTP client and its own error
    budget, so a budget tripped in one run does not carry over into the
    next. A passed in budget is used for every run instead.

    Args:
        storage: Entry storage providing previews and receiving results
        config: Feature configuration
        budget: Optional error budget shared by all runs

    Returns:
        Stage emitting every entry after its enrichment attempt
    """

    async def stage(entries: AsyncIterable[Entry]) -> AsyncIterator[Entry]:
        error_budget = budget if budget is not None else ErrorBudget(config.name)
        eligible = EntryEligibility(storage, config, error_budget)

        def test(entry: Entry) -> bool:
            if eligible(entry):
                record_entry_dispatched(config.name)
                return True
            return False

        limits = httpx.Limits(
            max_connections=config.concurrent,
            max_keepalive_connections=config.concurrent,
        )
        timeout = httpx.Timeout(config.timeout)
        async with httpx.AsyncClient(timeout=timeout, limits=limits) as client:
            task = EnrichmentTask(storage, config, error_budget, client)
            async for entry in bounded_dispatch(
                entries, task.run, test=test, concurrent=config.concurrent
            ):
                yield entry

    return stage
