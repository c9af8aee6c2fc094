"""Token-bucket pacing for outbound provider requests."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable


class AsyncTokenBucket:
    """Allow ``capacity`` requests in a burst, refilled at ``refill_per_second``.

    A refill rate of zero or less disables limiting entirely.
    """

    def __init__(
        self,
        capacity: int,
        refill_per_second: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1.")
        self.capacity = capacity
        self.refill_per_second = refill_per_second
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def per_batch(cls, batch_size: int, batch_pause_seconds: float) -> "AsyncTokenBucket":
        """One full batch of tokens every ``batch_pause_seconds``."""
        rate = batch_size / batch_pause_seconds if batch_pause_seconds > 0 else 0.0
        return cls(capacity=batch_size, refill_per_second=rate)

    @property
    def enabled(self) -> bool:
        return self.refill_per_second > 0

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._updated_at = now
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.refill_per_second)

    def _loop_lock(self) -> asyncio.Lock:
        # The bucket may outlive one event loop (test runs, server reloads).
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def acquire(self) -> None:
        if not self.enabled:
            return
        async with self._loop_lock():
            while True:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                await self._sleep((1.0 - self._tokens) / self.refill_per_second)
