"""Bounded-concurrency task executor.

Hey future me - this is where ALL the parallelism knobs of a run live:
- asyncio.Semaphore   → at most max_concurrency tasks in flight
- RateLimiter         → at most requests_per_second task STARTS (burst allowed)
- deadline_seconds    → tasks still running at the deadline get cancelled

Services never create tasks themselves. They hand factories (zero-arg callables returning a
coroutine) to run_all() or submit() and the executor decides when each one starts. Factories,
not coroutine objects, so a task that never gets to run doesn't leave an un-awaited coroutine
warning behind.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from releasebot.config import FetchSettings
from releasebot.domain.ports import ITaskExecutor
from releasebot.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DeadlineExceededError(TimeoutError):
    """A task was still running when the executor deadline expired."""

    def __init__(self, deadline_seconds: float) -> None:
        super().__init__(f"Task did not finish within the {deadline_seconds:.1f}s deadline")
        self.deadline_seconds = deadline_seconds


class BoundedTaskExecutor(ITaskExecutor):
    """ITaskExecutor backed by asyncio tasks, a semaphore and an optional rate limiter."""

    def __init__(
        self,
        max_concurrency: int = 4,
        rate_limiter: RateLimiter | None = None,
        deadline_seconds: float | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._rate_limiter = rate_limiter
        self._deadline_seconds = deadline_seconds
        # Strong references to submitted tasks - the event loop only keeps weak ones
        self._tasks: set[asyncio.Task[object]] = set()

    @classmethod
    def from_settings(cls, settings: FetchSettings) -> "BoundedTaskExecutor":
        return cls(
            max_concurrency=settings.max_concurrency,
            rate_limiter=RateLimiter.from_fetch_settings(settings),
            deadline_seconds=settings.deadline_seconds,
        )

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def _run_bounded(self, factory: Callable[[], Awaitable[T]]) -> T:
        async with self._semaphore:
            if self._rate_limiter is not None:
                await self._rate_limiter.acquire()
            return await factory()

    def _track(self, task: "asyncio.Task[T]") -> "asyncio.Task[T]":
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # Yo, run_all is JOIN-style: every factory gets exactly one slot in the returned list, in input
    # order, holding either its result or the exception it raised. One failure never cancels the
    # others. The ONLY cancellation point is the deadline - everything still running then is
    # cancelled and reported as DeadlineExceededError in its slot.
    async def run_all(
        self, factories: Sequence[Callable[[], Awaitable[T]]]
    ) -> list[T | BaseException]:
        """Run all factories with bounded parallelism and wait for every one of them."""
        if not factories:
            return []

        tasks = [self._track(asyncio.create_task(self._run_bounded(f))) for f in factories]
        try:
            _, pending = await asyncio.wait(tasks, timeout=self._deadline_seconds)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        if pending:
            logger.warning(
                "Deadline of %.1fs reached, cancelling %d of %d tasks",
                self._deadline_seconds,
                len(pending),
                len(tasks),
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        outcomes: list[T | BaseException] = []
        for task in tasks:
            if task in pending:
                outcomes.append(DeadlineExceededError(self._deadline_seconds or 0.0))
            elif task.cancelled():
                outcomes.append(asyncio.CancelledError())
            else:
                error = task.exception()
                outcomes.append(error if error is not None else task.result())
        return outcomes

    def submit(self, factory: Callable[[], Awaitable[T]]) -> "asyncio.Task[T]":
        """Schedule one tracked task under the same concurrency and rate limits."""
        return self._track(asyncio.create_task(self._run_bounded(factory)))

    async def shutdown(self) -> None:
        """Cancel every task that is still running and wait for them to settle."""
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug("Executor shut down, cancelled %d tasks", len(pending))


__all__ = [
    "BoundedTaskExecutor",
    "DeadlineExceededError",
]
