"""Unit tests for batch splitting and concurrent batch execution."""

from __future__ import annotations

import anyio
import pytest

from p4bridge.utils.batching import chunked, map_batches


class TestChunked:
    def test_splits_with_remainder(self) -> None:
        assert chunked(list(range(5)), 2) == [[0, 1], [2, 3], [4]]

    def test_exact_multiple(self) -> None:
        assert chunked(["a", "b", "c", "d"], 2) == [["a", "b"], ["c", "d"]]

    def test_empty(self) -> None:
        assert chunked([], 32) == []

    def test_rejects_zero_size(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            chunked(["a"], 0)


class TestMapBatches:
    @pytest.mark.asyncio
    async def test_results_follow_batch_order(self) -> None:
        """Later batches finishing first does not change result order."""

        async def fn(batch: list[int]) -> int:
            await anyio.sleep(0.02 if batch[0] == 0 else 0)
            return sum(batch)

        assert await map_batches([0, 1, 2, 3, 4], 2, fn) == [1, 5, 4]

    @pytest.mark.asyncio
    async def test_batches_run_concurrently(self) -> None:
        running = 0
        peak = 0

        async def fn(batch: list[str]) -> str:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await anyio.sleep(0.01)
            running -= 1
            return "".join(batch)

        await map_batches(list("abcdef"), 2, fn)

        assert peak == 3

    @pytest.mark.asyncio
    async def test_earliest_failure_is_raised(self) -> None:
        async def fn(batch: list[int]) -> int:
            if batch[0] == 2:
                raise ValueError("second batch")
            if batch[0] == 4:
                await anyio.sleep(0)
                raise RuntimeError("third batch")
            return 0

        with pytest.raises(ValueError, match="second batch"):
            await map_batches([0, 1, 2, 3, 4], 2, fn)

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_other_batches(self) -> None:
        finished: list[int] = []

        async def fn(batch: list[int]) -> int:
            if batch[0] == 0:
                raise ValueError("boom")
            await anyio.sleep(0.01)
            finished.append(batch[0])
            return 0

        with pytest.raises(ValueError):
            await map_batches([0, 1, 2], 1, fn)

        assert sorted(finished) == [1, 2]

    @pytest.mark.asyncio
    async def test_no_items(self) -> None:
        async def fn(batch: list[int]) -> int:
            raise AssertionError("not called")

        assert await map_batches([], 4, fn) == []
