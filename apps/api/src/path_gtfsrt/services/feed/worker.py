"""Periodic feed worker."""

from __future__ import annotations

import asyncio
import enum
from contextlib import suppress
from typing import Any

from path_gtfsrt.clock import Clock, Ticker
from path_gtfsrt.logging import bind_feed_context, get_logger
from path_gtfsrt.services.feed.cycle import CycleResult, CycleRunner
from path_gtfsrt.services.feed.snapshot import FeedSnapshot

logger = get_logger(__name__)


class WorkerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class FeedWorker:
    """Refreshes one feed on a fixed period and serves its latest snapshot.

    Usage:
        worker = FeedWorker(runner, clock, period_sec=5)
        await worker.start()   # runs the first cycle, then polls
        data = worker.get()
        await worker.stop()
    """

    def __init__(self, runner: CycleRunner[Any, Any], clock: Clock, period_sec: float) -> None:
        self._runner = runner
        self._clock = clock
        self._period_sec = period_sec

        self._state = WorkerState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._ticker: Ticker | None = None
        self._cycle_count = 0
        self._last_result: CycleResult | None = None

    @property
    def feed_type(self) -> str:
        return self._runner.feed_type

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is WorkerState.RUNNING

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    def get(self) -> bytes:
        """Latest serialized feed. Safe to call from any thread at any time."""
        return self._runner.store.get()

    def snapshot(self) -> FeedSnapshot:
        return self._runner.store.snapshot()

    async def start(self) -> None:
        """Run the first cycle, then start the periodic loop.

        Errors from the first cycle propagate; the worker stays idle.
        """
        if self._state is not WorkerState.IDLE:
            logger.warning(
                "Feed worker already started, ignoring start request",
                feed_type=self.feed_type,
                state=self._state.value,
            )
            return

        await self._run_cycle()

        # The ticker exists before start() returns so no tick is missed
        self._ticker = self._clock.ticker(self._period_sec)
        self._state = WorkerState.RUNNING
        self._task = asyncio.create_task(self._loop(self._ticker))
        logger.info(
            "Feed worker started",
            feed_type=self.feed_type,
            period_sec=self._period_sec,
        )

    async def stop(self) -> None:
        """Stop the loop. No snapshot is published once this returns."""
        if self._state is not WorkerState.RUNNING:
            self._state = WorkerState.STOPPED
            return

        self._state = WorkerState.STOPPED
        if self._task and not self._task.done():
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None
        logger.info("Feed worker stopped", feed_type=self.feed_type)

    def get_status(self) -> dict[str, Any]:
        """Worker status for the health endpoint."""
        result = self._last_result
        return {
            "feed_type": self.feed_type,
            "state": self._state.value,
            "running": self.is_running,
            "cycle_count": self._cycle_count,
            "period_sec": self._period_sec,
            "last_cycle_at": result.generated_at.isoformat() if result else None,
            "last_entity_count": result.entity_count if result else 0,
            "last_error_count": len(result.errors) if result else 0,
        }

    async def _run_cycle(self) -> CycleResult:
        result = await self._runner.run_once()
        self._cycle_count += 1
        self._last_result = result
        return result

    async def _loop(self, ticker: Ticker) -> None:
        bind_feed_context(self.feed_type)
        while True:
            await ticker.wait()
            try:
                await self._run_cycle()
            except Exception as exc:
                logger.error(
                    "Feed cycle failed unexpectedly",
                    feed_type=self.feed_type,
                    exc_info=exc,
                )
