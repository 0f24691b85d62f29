"""Sliding window rate limiter for outbound Graph API requests.

Default: 80 requests per 60 seconds, the Cloud API's per-number quota.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Admits at most ``max_requests`` calls per trailing ``interval`` seconds.

    Waiters are released by their own timers rather than a FIFO queue, so a
    later caller with a shorter wait can go first. Every released waiter
    re-checks the window before it is admitted.

    Single event loop only; the window is not guarded by a lock.
    """

    def __init__(
        self,
        max_requests: int = 80,
        interval: float = 60.0,
        *,
        purge_every: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._max_requests = max_requests
        self._interval = interval
        self._purge_every = purge_every
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._closed = asyncio.Event()
        self._purge_task: asyncio.Task[None] | None = None

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def pending(self) -> int:
        """Number of admissions currently inside the window."""
        return len(self._timestamps)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def acquire(self) -> float:
        """Wait until a request may start; return its admission instant."""
        self._ensure_purge_task()
        while not self._closed.is_set():
            now = self._clock()
            self._purge(now)
            if len(self._timestamps) < self._max_requests:
                return self._admit(now)

            wait = self._interval - (now - self._timestamps[0])
            if wait <= 0:
                # Boundary / clock skew: the oldest entry is already out
                return self._admit(now)

            logger.warning(
                "Rate limit reached (%d/%d), waiting %.3fs",
                len(self._timestamps), self._max_requests, wait,
            )
            await self._wait(wait)
        return self._clock()

    def _admit(self, now: float) -> float:
        self._timestamps.append(now)
        logger.debug(
            "Request admitted (%d/%d)", len(self._timestamps), self._max_requests,
        )
        return now

    def _purge(self, now: float) -> None:
        cutoff = now - self._interval
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()

    async def _wait(self, seconds: float) -> None:
        # Returns early when the limiter is closed
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._closed.wait(), timeout=seconds)

    def _ensure_purge_task(self) -> None:
        if self._purge_task is not None or self._closed.is_set():
            return
        self._purge_task = asyncio.get_running_loop().create_task(self._purge_loop())

    async def _purge_loop(self) -> None:
        while not self._closed.is_set():
            await self._wait(self._purge_every)
            self._purge(self._clock())

    def close(self) -> None:
        """Release all waiters, stop the background purge, drop the window."""
        self._closed.set()
        if self._purge_task is not None and not self._purge_task.done():
            self._purge_task.cancel()
        self._timestamps.clear()
        logger.debug("RateLimiter closed")

    async def aclose(self) -> None:
        task = self._purge_task
        self.close()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
