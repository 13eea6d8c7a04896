import asyncio

import pytest

from utils.concurrency import gather_ordered

@pytest.mark.asyncio
async def test_results_keep_input_order():
    async def worker(delay):
        await asyncio.sleep(delay)
        return delay

    delays = [0.05, 0.0, 0.03, 0.01]
    assert await gather_ordered(delays, worker) == delays

@pytest.mark.asyncio
async def test_limit_bounds_active_tasks():
    active = 0
    peak = 0

    async def worker(item):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return item * 2

    assert await gather_ordered(range(6), worker, max_concurrent=2) == [0, 2, 4, 6, 8, 10]
    assert peak == 2

@pytest.mark.asyncio
async def test_unexpected_error_waits_for_siblings():
    finished = []

    async def worker(item):
        if item == 0:
            raise KeyError("boom")
        await asyncio.sleep(0.02)
        finished.append(item)
        return item

    with pytest.raises(KeyError):
        await gather_ordered([0, 1, 2], worker)
    assert sorted(finished) == [1, 2]
