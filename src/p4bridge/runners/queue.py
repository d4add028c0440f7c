"""Bounded-concurrency execution queue.

The queue knows nothing about commands: it hands out at most
``max_concurrent`` slots to start thunks, in submission order, and hands the
next slot out as soon as a running job signals completion.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from p4bridge.constants import DEFAULT_MAX_CONCURRENT
from p4bridge.logging import get_logger

__all__ = ["DoneCallback", "ExecutionQueue", "Job", "StartThunk"]

logger = get_logger(__name__)

T = TypeVar("T")

#: One-shot callback that releases a job's slot.
DoneCallback = Callable[[], None]

#: Called with the job's done callback once a slot is granted.
StartThunk = Callable[[DoneCallback], None]


@dataclass(slots=True)
class Job:
    """A unit of scheduled work.

    Attributes:
        id: Monotonically increasing sequence number.
        label: Human-readable label, used in debug logs only.
        start: Thunk invoked when a slot is granted.
        completed: Set once the job has signalled completion.
    """

    id: int
    label: str
    start: StartThunk
    completed: bool = field(default=False)


class ExecutionQueue:
    """FIFO scheduler allowing at most ``max_concurrent`` active jobs.

    A job is active from the moment its start thunk is called until the
    thunk calls the done callback it was given. The callback must be called
    exactly once; a job that never calls it holds its slot forever, and a
    thunk that raises before calling it loses the slot as well.

    State changes are made under a lock; thunks are always called outside
    of it, so a thunk may complete synchronously.

    Example:
        ```python
        queue = ExecutionQueue(max_concurrent=4)

        def start(done):
            try:
                do_work()
            finally:
                done()

        queue.submit(start, "work")
        ```
    """

    def __init__(
        self,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        *,
        debug_mode: bool = False,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._max_concurrent = max_concurrent
        self._debug_mode = debug_mode
        self._pending: deque[Job] = deque()
        self._active = 0
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def active_count(self) -> int:
        """Number of started jobs that have not signalled completion."""
        return self._active

    @property
    def pending_count(self) -> int:
        """Number of submitted jobs waiting for a slot."""
        return len(self._pending)

    @property
    def debug_mode(self) -> bool:
        return self._debug_mode

    @debug_mode.setter
    def debug_mode(self, value: bool) -> None:
        self._debug_mode = value

    def submit(self, start: StartThunk, label: str = "") -> None:
        """Queue *start* and run it as soon as a slot is free.

        If a slot is free the thunk runs before this method returns.

        Args:
            start: Thunk receiving the one-shot done callback.
            label: Human-readable label for debug logging.
        """
        with self._lock:
            job = Job(id=next(self._ids), label=label, start=start)
            self._pending.append(job)
            self._trace("queue_job_submitted", job)
        self._drain()

    async def run(self, factory: Callable[[], Awaitable[T]], label: str = "") -> T:
        """Run ``factory()`` inside a queue slot and return its result.

        The slot is released when the coroutine finishes, whether it returns
        or raises, and before the caller is resumed.

        Args:
            factory: Zero-argument callable returning an awaitable.
            label: Human-readable label for debug logging.

        Returns:
            Whatever the awaitable returns.

        Raises:
            Exception: Whatever the awaitable raises.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()

        async def body(done: DoneCallback) -> None:
            try:
                result = await factory()
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as exc:
                if not future.done():
                    future.set_exception(exc)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                done()

        def start(done: DoneCallback) -> None:
            task = loop.create_task(body(done))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        self.submit(start, label)
        return await future

    def _drain(self) -> None:
        """Start pending jobs while slots are available."""
        while True:
            with self._lock:
                if self._active >= self._max_concurrent or not self._pending:
                    return
                job = self._pending.popleft()
                self._active += 1
                self._trace("queue_job_started", job)
            job.start(self._make_done(job))

    def _make_done(self, job: Job) -> DoneCallback:
        def done() -> None:
            with self._lock:
                if job.completed:
                    logger.warning(
                        "queue_job_completed_twice", job_id=job.id, label=job.label
                    )
                    return
                job.completed = True
                self._active -= 1
                self._trace("queue_job_completed", job)
            self._drain()

        return done

    def _trace(self, event: str, job: Job) -> None:
        # Called with the lock held
        if self._debug_mode:
            logger.debug(
                event,
                job_id=job.id,
                label=job.label,
                active=self._active,
                queued=len(self._pending),
            )
