"""Bounded fan-out over a work list."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


async def run_with_concurrency(
    items: Sequence[T],
    concurrency: int,
    worker: Callable[[T], Awaitable[None]],
) -> None:
    """Run ``worker`` over ``items`` with at most ``concurrency`` in flight.

    Each runner claims the next unclaimed item through a shared index until
    the list is exhausted.  The first failure cancels the other runners and
    propagates; no partial result is kept.
    """
    next_index = 0

    async def runner() -> None:
        nonlocal next_index
        while next_index < len(items):
            item = items[next_index]
            next_index += 1
            await worker(item)

    runners = [asyncio.create_task(runner()) for _ in range(min(max(concurrency, 1), len(items)))]
    if not runners:
        return

    try:
        await asyncio.gather(*runners)
    except BaseException:
        for task in runners:
            task.cancel()
        await asyncio.gather(*runners, return_exceptions=True)
        raise
