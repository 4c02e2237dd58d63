import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def gather_in_batches(items: Iterable[T], size: int,
                            worker: Callable[[T], Awaitable[R]]) -> List[R]:
    """Run worker over items, size at a time; each batch finishes before the next starts.

    Results keep the input order. Workers are expected to handle their own
    errors; an exception escaping a worker propagates to the caller.
    """
    items = list(items)
    size = max(1, size)
    results: List[R] = []
    for i in range(0, len(items), size):
        batch = items[i:i + size]
        results.extend(await asyncio.gather(*(worker(x) for x in batch)))
    return results
