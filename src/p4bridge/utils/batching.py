"""Splitting long argument lists into concurrent batches.

p4 commands taking many paths (``fstat`` above all) are run in batches so
no single command line grows unbounded. Batches run concurrently in an
anyio task group; results come back in batch order whatever order the
batches finish in.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import anyio

from p4bridge.logging import get_logger

__all__ = ["chunked", "map_batches"]

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split *items* into consecutive lists of at most *size* items.

    Raises:
        ValueError: If *size* is less than 1.
    """
    if size < 1:
        raise ValueError(f"batch size must be at least 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def map_batches(
    items: Sequence[T],
    size: int,
    fn: Callable[[list[T]], Awaitable[R]],
) -> list[R]:
    """Call *fn* on every batch of *items* concurrently.

    Every batch runs to completion even if another one fails. If any
    failed, the exception of the earliest failing batch is raised; the
    others are logged.

    Returns:
        One result per batch, in batch order.
    """
    batches = chunked(items, size)
    results: list[R | None] = [None] * len(batches)
    errors: dict[int, Exception] = {}

    async def run_batch(index: int, batch: list[T]) -> None:
        try:
            results[index] = await fn(batch)
        except Exception as exc:
            errors[index] = exc

    async with anyio.create_task_group() as tg:
        for index, batch in enumerate(batches):
            tg.start_soon(run_batch, index, batch)

    if errors:
        first = min(errors)
        for index in sorted(errors)[1:]:
            logger.debug(
                "batch_failed",
                batch=index,
                batches=len(batches),
                error=str(errors[index]),
            )
        raise errors[first]

    return results  # type: ignore[return-value]
