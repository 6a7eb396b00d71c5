"""
Bounded fan-out for tenant-wide batch computations.

Tenant batches fan out one coroutine per account. Unbounded, that opens one
connection request per account and exhausts the asyncpg pool on tenants with
tens of thousands of accounts. gather_bounded schedules items in chunks and,
inside each chunk, lets at most ``limit`` calls run at once.

Callers that serve requests pass the limits from Settings; the module
defaults let the helper run without any environment configured.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_CHUNK_SIZE = 500


async def _cancel_and_wait(tasks: Sequence["asyncio.Task[R]"]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def gather_bounded(
    items: Sequence[T],
    func: Callable[[T], Awaitable[R]],
    limit: Optional[int] = None,
    chunk_size: Optional[int] = None,
) -> List[R]:
    """
    Apply an async function to every item with bounded concurrency.

    Args:
        items: Inputs, typically accounts or sales reps.
        func: Coroutine function called once per item.
        limit: Max calls in flight (default: DEFAULT_MAX_CONCURRENCY).
        chunk_size: Items scheduled per chunk (default: DEFAULT_CHUNK_SIZE).

    Returns:
        Results in the same order as ``items``.

    Raises:
        Whatever ``func`` raises. On the first failure every sibling call is
        cancelled and awaited before the exception reaches the caller, and
        later chunks are never started.
    """
    if not items:
        return []

    limit = max(1, limit or DEFAULT_MAX_CONCURRENCY)
    chunk_size = max(1, chunk_size or DEFAULT_CHUNK_SIZE)
    semaphore = asyncio.Semaphore(limit)

    async def _run(item: T) -> R:
        async with semaphore:
            return await func(item)

    results: List[R] = []
    for start in range(0, len(items), chunk_size):
        chunk = items[start:start + chunk_size]
        tasks = [asyncio.ensure_future(_run(item)) for item in chunk]

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            await _cancel_and_wait(tasks)
            raise

        if pending:
            await _cancel_and_wait(list(pending))

        for task in tasks:
            if task in done and not task.cancelled() and task.exception() is not None:
                logger.debug(f"Fan-out aborted after failure in chunk starting at {start}")
                raise task.exception()

        results.extend(task.result() for task in tasks)

    logger.debug(f"Fan-out completed for {len(items)} items (limit={limit}, chunk={chunk_size})")
    return results
