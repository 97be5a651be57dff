"""Async rate limiter bounding outbound provider calls."""
from __future__ import annotations

import asyncio
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Deque, Optional


class RateLimiter:
    """Allow at most ``rate`` call starts per ``interval_s`` and ``concurrency`` in flight.

    Callers over either limit wait their turn; nothing is rejected.
    """

    def __init__(
        self,
        rate: int,
        interval_s: float,
        concurrency: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if rate < 1 or concurrency < 1 or interval_s <= 0:
            raise ValueError("rate, concurrency and interval_s must be positive")
        self.rate = rate
        self.interval_s = interval_s
        self.concurrency = concurrency
        self._clock = clock
        self._sleep = sleep
        self._starts: Deque[float] = deque()
        self._in_flight = 0
        self.peak_in_flight = 0
        self.total_acquired = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._window_lock: Optional[asyncio.Lock] = None

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def _primitives(self) -> tuple[asyncio.Semaphore, asyncio.Lock]:
        # asyncio primitives belong to one loop; rebuild them when a new loop drives us
        loop = asyncio.get_running_loop()
        if self._loop is not loop or self._semaphore is None or self._window_lock is None:
            self._loop = loop
            self._semaphore = asyncio.Semaphore(self.concurrency)
            self._window_lock = asyncio.Lock()
            self._in_flight = 0
        return self._semaphore, self._window_lock

    async def _reserve_window(self, lock: asyncio.Lock) -> None:
        async with lock:
            while True:
                now = self._clock()
                while self._starts and now - self._starts[0] >= self.interval_s:
                    self._starts.popleft()
                if len(self._starts) < self.rate:
                    self._starts.append(now)
                    return
                wait = self.interval_s - (now - self._starts[0])
                await self._sleep(max(wait, 0.001))

    async def acquire(self) -> None:
        semaphore, lock = self._primitives()
        await semaphore.acquire()
        try:
            await self._reserve_window(lock)
        except BaseException:
            semaphore.release()
            raise
        self._in_flight += 1
        self.total_acquired += 1
        self.peak_in_flight = max(self.peak_in_flight, self._in_flight)

    def release(self) -> None:
        semaphore, _ = self._primitives()
        self._in_flight = max(0, self._in_flight - 1)
        semaphore.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        await self.acquire()
        try:
            yield
        finally:
            self.release()


__all__ = ["RateLimiter"]
