"""Shared helpers for the enrichment orchestrator."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import AsyncIterator, Awaitable, List, Sequence, TypeVar

from ..common.types import CatalogItem
from ..common.validation import require_positive, year_from_date

T = TypeVar("T")

_CHECKABLE_KINDS = frozenset({"movie", "series"})

logger = logging.getLogger("plex_requests.enrichment")


def close_coroutines(tasks: Sequence[Awaitable[object]]) -> None:
    """Close coroutine objects to avoid unawaited warnings."""

    for task in tasks:
        if inspect.iscoroutine(task):
            task.close()


async def iter_gather_in_batches(
    tasks: Sequence[Awaitable[T]], batch_size: int
) -> AsyncIterator[T]:
    """Yield results from awaitable tasks in fixed-size batches, in order."""

    try:
        require_positive(batch_size, name="batch_size")
    except (TypeError, ValueError):
        close_coroutines(tasks)
        raise

    total = len(tasks)
    for i in range(0, total, batch_size):
        batch = tasks[i : i + batch_size]
        for result in await asyncio.gather(*batch):
            yield result
        logger.debug("Checked %d/%d items", min(i + batch_size, total), total)


async def gather_in_batches(
    tasks: Sequence[Awaitable[T]], batch_size: int
) -> List[T]:
    """Gather awaitable tasks in fixed-size batches."""

    return [result async for result in iter_gather_in_batches(tasks, batch_size)]


def availability_target(item: CatalogItem) -> tuple[str, int, str] | None:
    """Return the ``(title, year, kind)`` to check, or ``None`` to skip *item*.

    The year is ``0`` (match any) when the release date is missing.
    """

    if not item.title or item.kind not in _CHECKABLE_KINDS:
        return None
    return item.title, year_from_date(item.release_date), item.kind


__all__ = [
    "availability_target",
    "close_coroutines",
    "gather_in_batches",
    "iter_gather_in_batches",
]
