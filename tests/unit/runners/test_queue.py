"""Tests for ExecutionQueue."""

from __future__ import annotations

import asyncio
import random

import pytest

from p4bridge.runners.queue import DoneCallback, ExecutionQueue


class TestSubmit:
    """Scheduling with raw start thunks."""

    def test_rejects_non_positive_limit(self) -> None:
        with pytest.raises(ValueError):
            ExecutionQueue(max_concurrent=0)

    def test_starts_immediately_when_slot_free(self) -> None:
        queue = ExecutionQueue(max_concurrent=2)
        started: list[str] = []

        queue.submit(lambda done: started.append("a"), "a")

        assert started == ["a"]
        assert queue.active_count == 1
        assert queue.pending_count == 0

    def test_jobs_wait_for_a_slot(self) -> None:
        queue = ExecutionQueue(max_concurrent=1)
        dones: list[DoneCallback] = []
        started: list[str] = []

        def start(name: str):
            def thunk(done: DoneCallback) -> None:
                started.append(name)
                dones.append(done)

            return thunk

        queue.submit(start("a"))
        queue.submit(start("b"))
        queue.submit(start("c"))

        assert started == ["a"]
        assert queue.pending_count == 2

        dones[0]()
        assert started == ["a", "b"]
        dones[1]()
        assert started == ["a", "b", "c"]
        dones[2]()
        assert queue.active_count == 0
        assert queue.pending_count == 0

    def test_fifo_order(self) -> None:
        queue = ExecutionQueue(max_concurrent=1)
        order: list[int] = []

        for i in range(5):
            queue.submit(lambda done, i=i: (order.append(i), done()))

        assert order == [0, 1, 2, 3, 4]

    def test_synchronous_completion_drains_queue(self) -> None:
        queue = ExecutionQueue(max_concurrent=2)
        completed: list[int] = []

        def thunk(done: DoneCallback, i: int) -> None:
            completed.append(i)
            done()

        for i in range(10):
            queue.submit(lambda done, i=i: thunk(done, i))

        assert completed == list(range(10))
        assert queue.active_count == 0

    def test_second_done_is_ignored(self) -> None:
        queue = ExecutionQueue(max_concurrent=1)
        dones: list[DoneCallback] = []
        started: list[str] = []

        queue.submit(lambda done: (started.append("a"), dones.append(done)))
        queue.submit(lambda done: (started.append("b"), dones.append(done)))
        queue.submit(lambda done: (started.append("c"), dones.append(done)))

        dones[0]()
        dones[0]()

        # The duplicate call must not free a second slot
        assert started == ["a", "b"]
        assert queue.active_count == 1

    def test_thunk_exception_propagates_and_loses_slot(self) -> None:
        queue = ExecutionQueue(max_concurrent=1)

        def boom(done: DoneCallback) -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            queue.submit(boom)

        assert queue.active_count == 1

    def test_debug_mode_toggle(self) -> None:
        queue = ExecutionQueue(debug_mode=True)
        assert queue.debug_mode is True

        queue.debug_mode = False
        assert queue.debug_mode is False

    def test_debug_mode_does_not_change_scheduling(self) -> None:
        queue = ExecutionQueue(max_concurrent=1, debug_mode=True)
        order: list[int] = []

        for i in range(3):
            queue.submit(lambda done, i=i: (order.append(i), done()), f"job-{i}")

        assert order == [0, 1, 2]


class TestRun:
    """Async convenience wrapper."""

    @pytest.mark.asyncio
    async def test_returns_result(self) -> None:
        queue = ExecutionQueue(max_concurrent=2)

        async def work() -> str:
            return "done"

        assert await queue.run(work, "work") == "done"
        assert queue.active_count == 0

    @pytest.mark.asyncio
    async def test_propagates_exception_and_frees_slot(self) -> None:
        queue = ExecutionQueue(max_concurrent=1)

        async def fail() -> None:
            raise ValueError("nope")

        with pytest.raises(ValueError, match="nope"):
            await queue.run(fail)

        assert queue.active_count == 0

        async def ok() -> int:
            return 1

        assert await queue.run(ok) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("limit", "jobs"), [(1, 5), (3, 20), (10, 50)])
    async def test_never_exceeds_limit(self, limit: int, jobs: int) -> None:
        queue = ExecutionQueue(max_concurrent=limit)
        running = 0
        peak = 0
        finished: list[int] = []

        async def job(i: int) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(random.uniform(0, 0.005))
            running -= 1
            finished.append(i)
            return i

        results = await asyncio.gather(
            *(queue.run(lambda i=i: job(i), f"job-{i}") for i in range(jobs))
        )

        assert peak <= limit
        assert results == list(range(jobs))
        assert sorted(finished) == list(range(jobs))
        assert queue.active_count == 0
        assert queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_limit_is_reached_under_load(self) -> None:
        queue = ExecutionQueue(max_concurrent=3)
        release = asyncio.Event()
        running = 0
        peak = 0

        async def job() -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await release.wait()
            running -= 1

        tasks = [asyncio.ensure_future(queue.run(job)) for _ in range(6)]
        await asyncio.sleep(0.01)

        assert queue.active_count == 3
        assert queue.pending_count == 3

        release.set()
        await asyncio.gather(*tasks)
        assert peak == 3
