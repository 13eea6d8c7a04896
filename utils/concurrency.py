"""
Concurrency management utilities
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)

class TaskLimiter:
    """Optional cap on how many tasks run at once"""

    def __init__(self, max_concurrent: Optional[int] = None):
        self.max_concurrent = max_concurrent
        self.semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None
        self.active = 0

    async def __aenter__(self):
        if self.semaphore:
            await self.semaphore.acquire()
        self.active += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.active -= 1
        if self.semaphore:
            self.semaphore.release()

async def gather_ordered(
    items: Sequence[Any],
    worker: Callable[[Any], Awaitable[Any]],
    max_concurrent: Optional[int] = None,
) -> List[Any]:
    """Run worker(item) for every item concurrently, results in input order

    Each task writes only its own slot, so no lock is needed. Exceptions
    raised by a worker do not cancel its siblings; once every task has
    finished, the first one is re-raised.
    """
    limiter = TaskLimiter(max_concurrent)
    results: List[Any] = [None] * len(items)

    async def run(index: int, item: Any) -> None:
        async with limiter:
            results[index] = await worker(item)

    tasks = [asyncio.create_task(run(i, item)) for i, item in enumerate(items)]
    try:
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return results
