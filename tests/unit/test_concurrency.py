"""
Unit tests for tri_scan/concurrency.py
"""

import asyncio
import random

import pytest

from tri_scan.concurrency import run_limited


class TestRunLimited:
    """Test the bounded order-preserving runner."""

    @pytest.mark.asyncio
    async def test_results_follow_input_order(self):
        """20 items, 4 workers, random completion order."""
        items = list(range(20))
        rng = random.Random(7)
        delays = [rng.uniform(0, 0.01) for _ in items]

        async def task(item, index):
            await asyncio.sleep(delays[index])
            return item * item

        results = await run_limited(items, 4, task)

        assert results == [i * i for i in items]

    @pytest.mark.asyncio
    async def test_concurrency_never_exceeds_limit(self):
        active = 0
        peak = 0

        async def task(item, index):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.001)
            active -= 1
            return index

        await run_limited(list(range(20)), 4, task)

        assert peak == 4

    @pytest.mark.asyncio
    async def test_limit_below_one_runs_sequentially(self):
        active = 0
        peak = 0

        async def task(item, index):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0)
            active -= 1
            return item

        results = await run_limited(["a", "b", "c"], 0, task)

        assert results == ["a", "b", "c"]
        assert peak == 1

    @pytest.mark.asyncio
    async def test_empty_input(self):
        async def task(item, index):
            raise AssertionError("should not be called")

        assert await run_limited([], 4, task) == []

    @pytest.mark.asyncio
    async def test_exception_propagates(self):
        async def task(item, index):
            await asyncio.sleep(0)
            if item == 3:
                raise ValueError("boom")
            return item

        with pytest.raises(ValueError, match="boom"):
            await run_limited(list(range(10)), 2, task)
