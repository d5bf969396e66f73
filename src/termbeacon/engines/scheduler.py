"""Cooperative idle-time scheduling of chunked work on an asyncio loop."""

import asyncio
import time
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar, Union

from termbeacon.config import EngineConfig
from termbeacon.exceptions import SchedulerError
from termbeacon.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

ItemSource = Union[Sequence[T], Callable[[], Sequence[T]]]


class IdleDeadline:
    """Time budget of one idle window."""

    def __init__(
        self,
        budget_ms: float,
        did_timeout: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._end = clock() + budget_ms / 1000.0
        self.did_timeout = did_timeout

    def time_remaining(self) -> float:
        """Milliseconds left in this window, never negative."""
        return max(0.0, (self._end - self._clock()) * 1000.0)


class ChunkedTask(Generic[T]):
    """A resumable job: a list of items, a cursor into it and per-item work.

    The cursor only moves forward. Cancellation takes effect at the next
    chunk boundary.
    """

    def __init__(self, name: str, items: ItemSource, work: Callable[[T], Any]) -> None:
        self.name = name
        self._source = items
        self.items: Optional[Sequence[T]] = None
        self.work = work
        self.cursor = 0
        self.processed = 0
        self.chunks = 0
        # Chunks that ran because the idle wait timed out.
        self.forced_chunks = 0
        self.error: Optional[BaseException] = None
        self.cancelled = False
        self._finished = asyncio.Event()
        self._callbacks: list[Callable[["ChunkedTask[T]"], None]] = []
        self._handle: Optional[asyncio.Task] = None

    def resolve_items(self) -> Sequence[T]:
        """Materialize the item list; lazy sources are read once, on first use."""
        if self.items is None:
            self.items = self._source() if callable(self._source) else self._source
        return self.items

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    @property
    def failed(self) -> bool:
        return self.error is not None

    def cancel(self) -> None:
        self.cancelled = True

    def add_done_callback(self, callback: Callable[["ChunkedTask[T]"], None]) -> None:
        if self.done:
            callback(self)
        else:
            self._callbacks.append(callback)

    async def wait(self) -> "ChunkedTask[T]":
        await self._finished.wait()
        return self

    def _finish(self) -> None:
        self._finished.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("Task completion callback failed", task=self.name)


class IdleScheduler:
    """Runs chunked jobs only while the host reports itself idle.

    A window processes at most ``chunk_size`` items and stops early once
    less than ``min_remaining_ms`` of its ``window_ms`` budget is left. Each
    window waits for the idle signal for at most the job's timeout, then
    runs anyway so a busy host cannot starve the job. At least one item is
    processed per window.
    """

    def __init__(
        self,
        chunk_size: int = 50,
        window_ms: float = 50.0,
        min_remaining_ms: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if chunk_size < 1:
            raise SchedulerError("chunk_size must be at least 1")
        self.chunk_size = chunk_size
        self.window_ms = window_ms
        self.min_remaining_ms = min_remaining_ms
        self._clock = clock
        self._idle = asyncio.Event()
        self._idle.set()
        self._tasks: set[ChunkedTask] = set()

    @classmethod
    def from_config(cls, config: EngineConfig) -> "IdleScheduler":
        return cls(
            chunk_size=config.chunk_size,
            window_ms=config.window_ms,
            min_remaining_ms=config.min_remaining_ms,
        )

    @property
    def is_idle(self) -> bool:
        return self._idle.is_set()

    @property
    def active(self) -> int:
        return len(self._tasks)

    def mark_busy(self) -> None:
        """Host signal: higher-priority work is pending."""
        self._idle.clear()

    def mark_idle(self) -> None:
        """Host signal: idle windows may be granted again."""
        self._idle.set()

    def run_chunked(
        self,
        items: ItemSource,
        work: Callable[[T], Any],
        timeout_ms: float = 1000.0,
        name: str = "job",
    ) -> ChunkedTask[T]:
        """Schedule ``work`` over ``items``; must be called inside a running loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise SchedulerError("run_chunked requires a running event loop") from e

        task: ChunkedTask[T] = ChunkedTask(name, items, work)
        self._tasks.add(task)
        task._handle = loop.create_task(self._drive(task, timeout_ms))
        return task

    async def drain(self) -> None:
        """Wait until no job is in flight, including jobs spawned meanwhile."""
        while True:
            await asyncio.sleep(0)
            handles = [t._handle for t in self._tasks if t._handle is not None]
            if not handles:
                return
            await asyncio.gather(*handles, return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    async def _wait_for_idle(self, timeout_ms: float) -> bool:
        """Yield to the loop, then wait for an idle window. True on timeout."""
        await asyncio.sleep(0)
        if self._idle.is_set():
            return False
        try:
            await asyncio.wait_for(self._idle.wait(), timeout_ms / 1000.0)
        except asyncio.TimeoutError:
            return True
        return False

    async def _drive(self, task: ChunkedTask, timeout_ms: float) -> None:
        try:
            while not task.cancelled:
                did_timeout = await self._wait_for_idle(timeout_ms)
                if task.cancelled:
                    break
                items = task.resolve_items()
                if task.cursor >= len(items):
                    break
                self._run_chunk(task, IdleDeadline(self.window_ms, did_timeout, self._clock))
                if task.cursor >= len(items):
                    break
        except Exception as e:
            task.error = e
            logger.error(
                "Chunked task aborted",
                task=task.name,
                processed=task.processed,
                error=str(e),
            )
        finally:
            self._tasks.discard(task)
            task._finish()

    def _run_chunk(self, task: ChunkedTask, deadline: IdleDeadline) -> None:
        items = task.items
        handled = 0
        while task.cursor < len(items) and handled < self.chunk_size:
            if handled and deadline.time_remaining() <= self.min_remaining_ms:
                break
            item = items[task.cursor]
            task.cursor += 1
            task.work(item)
            task.processed += 1
            handled += 1
        task.chunks += 1
        if deadline.did_timeout:
            task.forced_chunks += 1
            logger.debug("Chunk ran without an idle window", task=task.name, items=handled)
