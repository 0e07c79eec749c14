"""Stream stages and the bounded dispatcher.

A stage turns an async stream of entries into another async stream of
entries. Stages are chained with ``pipe``:

    entries = pipe(source, log_public_api_privacy_hint(settings), object_detection(...))
    async for entry in entries:
        ...

The bounded dispatcher runs an async task for every entry accepted by a test
function, with at most ``concurrent`` tasks in flight. Entries rejected by
the test pass through without running the task. Every input entry is
emitted exactly once and unchanged; entries with a task are emitted after
the task has completed, so the output follows completion order rather than
input order.

The upstream stream is only pulled while a task slot is free, which bounds
memory to the in-flight tasks regardless of stream length.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

from extractor.core.logging import get_logger, sanitize_error

logger = get_logger(__name__)

T = TypeVar("T")

Stage = Callable[[AsyncIterable[Any]], AsyncIterator[Any]]

# Marks the end of the upstream stream inside a pull task
_EXHAUSTED = object()


def passthrough() -> Stage:
    """Create a stage that emits every entry unchanged."""

    async def stage(entries: AsyncIterable[T]) -> AsyncIterator[T]:
        async for entry in entries:
            yield entry

    return stage


def pipe(source: AsyncIterable[Any], *stages: Stage) -> AsyncIterator[Any]:
    """Chain stages onto a source stream."""
    stream: AsyncIterable[Any] = source
    for stage in stages:
        stream = stage(stream)
    return aiter(stream)


async def iterate(items: Any) -> AsyncIterator[Any]:
    """Turn a sync iterable into an async stream."""
    for item in items:
        yield item


async def bounded_dispatch(
    entries: AsyncIterable[T],
    task: Callable[[T], Awaitable[None]],
    *,
    test: Callable[[T], bool],
    concurrent: int,
) -> AsyncIterator[T]:
    """Run ``task`` for entries accepted by ``test`` with bounded concurrency.

    Args:
        entries: Upstream entry stream
        task: Async task run for each accepted entry
        test: Eligibility test, evaluated when the entry is pulled
        concurrent: Maximum number of tasks in flight

    Yields:
        Every upstream entry exactly once. Rejected entries are emitted when
        pulled, accepted entries when their task completes.
    """
    if concurrent < 1:
        raise ValueError(f"Concurrency must be at least 1, got {concurrent}")

    iterator = aiter(entries)

    async def pull() -> Any:
        try:
            return await anext(iterator)
        except StopAsyncIteration:
            return _EXHAUSTED

    async def run(entry: T) -> T:
        try:
            await task(entry)
        except Exception as e:
            logger.error(
                f"Unexpected error in task for {entry}: {sanitize_error(e)}",
                exc_info=True,
            )
        return entry

    running: set[asyncio.Task[T]] = set()
    next_entry: asyncio.Task[Any] | None = None
    exhausted = False

    try:
        while True:
            if next_entry is None and not exhausted and len(running) < concurrent:
                next_entry = asyncio.create_task(pull())

            waiting: set[asyncio.Task[Any]] = set(running)
            if next_entry is not None:
                waiting.add(next_entry)
            if not waiting:
                break

            done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

            # Emit completed tasks before handling the pulled entry
            for finished in done:
                if finished is next_entry:
                    continue
                running.discard(finished)
                yield finished.result()

            if next_entry is not None and next_entry in done:
                pulled = next_entry.result()
                next_entry = None
                if pulled is _EXHAUSTED:
                    exhausted = True
                elif test(pulled):
                    running.add(asyncio.create_task(run(pulled)))
                else:
                    yield pulled
    finally:
        pending = set(running)
        if next_entry is not None:
            pending.add(next_entry)
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        # Close upstream stages so their in-flight tasks are cancelled too
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
