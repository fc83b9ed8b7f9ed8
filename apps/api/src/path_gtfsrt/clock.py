"""Time sources for the feed workers.

``SystemClock`` is used in production. ``MockClock`` only moves when a test
calls :meth:`MockClock.advance`, which fires every ticker that falls due and
lets the woken tasks run before returning, so feed cycles can be driven
without sleeping.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Protocol

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Event loop passes given to woken tasks by MockClock.advance
_ADVANCE_YIELDS = 20


class Ticker(Protocol):
    async def wait(self) -> datetime:
        """Block until the next tick and return its scheduled time."""
        ...

    def stop(self) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...

    def ticker(self, period_sec: float) -> Ticker: ...


class _SystemTicker:
    """Fixed-rate ticker on the running event loop's monotonic clock."""

    def __init__(self, period_sec: float) -> None:
        self._period = period_sec
        self._next = asyncio.get_running_loop().time() + period_sec
        self._stopped = False

    async def wait(self) -> datetime:
        if self._stopped:
            raise RuntimeError("ticker is stopped")
        loop = asyncio.get_running_loop()
        now = loop.time()
        # Missed ticks are dropped rather than delivered in a burst
        while self._next <= now - self._period:
            self._next += self._period
        delay = self._next - now
        self._next += self._period
        if delay > 0:
            await asyncio.sleep(delay)
        return datetime.now(timezone.utc)

    def stop(self) -> None:
        self._stopped = True


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def ticker(self, period_sec: float) -> Ticker:
        return _SystemTicker(period_sec)


class _MockTicker:
    def __init__(self, clock: MockClock, period_sec: float) -> None:
        self._clock = clock
        self.period = timedelta(seconds=period_sec)
        self.next_tick = clock.now() + self.period
        # Holds at most one pending tick; extra ticks are dropped
        self._ticks: asyncio.Queue[datetime] = asyncio.Queue(maxsize=1)
        self.stopped = False

    def fire(self) -> None:
        if self._ticks.empty():
            self._ticks.put_nowait(self.next_tick)
        self.next_tick += self.period

    async def wait(self) -> datetime:
        if self.stopped:
            raise RuntimeError("ticker is stopped")
        return await self._ticks.get()

    def stop(self) -> None:
        self.stopped = True
        self._clock.remove(self)


class MockClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime = EPOCH) -> None:
        self._now = start
        self._tickers: list[_MockTicker] = []

    def now(self) -> datetime:
        return self._now

    def ticker(self, period_sec: float) -> Ticker:
        if period_sec <= 0:
            raise ValueError("ticker period must be positive")
        ticker = _MockTicker(self, period_sec)
        self._tickers.append(ticker)
        return ticker

    def remove(self, ticker: _MockTicker) -> None:
        if ticker in self._tickers:
            self._tickers.remove(ticker)

    async def advance(self, seconds: float) -> None:
        """Move time forward, firing due tickers in time order.

        Returns after the tasks waiting on fired tickers have had a chance
        to run.
        """
        target = self._now + timedelta(seconds=seconds)
        while True:
            due = [t for t in self._tickers if t.next_tick <= target]
            if not due:
                break
            ticker = min(due, key=lambda t: t.next_tick)
            self._now = ticker.next_tick
            ticker.fire()
        self._now = target

        for _ in range(_ADVANCE_YIELDS):
            await asyncio.sleep(0)
