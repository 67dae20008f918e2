"""
Bounded, order-preserving async execution.

Caps how many upstream requests are in flight at once. Results come back
in input order regardless of completion order.
"""

import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_limited(
    items: Sequence[T],
    limit: int,
    task: Callable[[T, int], Awaitable[R]],
) -> List[R]:
    """
    Run task(item, index) for every item with at most `limit` active at once.

    Args:
        items: Work items
        limit: Worker count (values below 1 behave as 1)
        task: Coroutine function receiving the item and its index

    Returns:
        List of results where result[i] belongs to items[i]

    Raises:
        Any exception raised by a task. Remaining workers are cancelled.
    """
    out: List[R] = [None] * len(items)  # type: ignore[list-item]
    next_index = 0

    async def worker() -> None:
        nonlocal next_index
        while next_index < len(items):
            current = next_index
            next_index += 1
            out[current] = await task(items[current], current)

    worker_count = min(max(1, limit), max(1, len(items)))
    workers = [asyncio.ensure_future(worker()) for _ in range(worker_count)]
    try:
        await asyncio.gather(*workers)
    except BaseException:
        for w in workers:
            if not w.done():
                w.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        raise
    return out
