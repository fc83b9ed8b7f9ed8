"""Tests for the mock clock used to drive feed cycles."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from datetime import timedelta

import pytest

from path_gtfsrt.clock import EPOCH, MockClock, SystemClock


class TestMockClock:
    def test_starts_at_epoch(self) -> None:
        assert MockClock().now() == EPOCH

    @pytest.mark.asyncio
    async def test_advance_moves_time(self) -> None:
        clock = MockClock()
        await clock.advance(7.5)
        assert clock.now() == EPOCH + timedelta(seconds=7.5)

    @pytest.mark.asyncio
    async def test_ticker_fires_when_due(self) -> None:
        clock = MockClock()
        ticker = clock.ticker(5)
        ticks: list = []

        async def consume() -> None:
            while True:
                ticks.append(await ticker.wait())

        task = asyncio.create_task(consume())
        try:
            await clock.advance(4)
            assert ticks == []

            await clock.advance(1)
            assert ticks == [EPOCH + timedelta(seconds=5)]

            await clock.advance(5)
            assert ticks == [EPOCH + timedelta(seconds=5), EPOCH + timedelta(seconds=10)]
        finally:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    @pytest.mark.asyncio
    async def test_unconsumed_ticks_are_coalesced(self) -> None:
        clock = MockClock()
        ticker = clock.ticker(1)

        await clock.advance(10)

        assert await ticker.wait() == EPOCH + timedelta(seconds=1)
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(ticker.wait(), timeout=0.01)

    @pytest.mark.asyncio
    async def test_stopped_ticker_no_longer_fires(self) -> None:
        clock = MockClock()
        ticker = clock.ticker(1)
        ticker.stop()

        await clock.advance(5)

        with pytest.raises(RuntimeError):
            await ticker.wait()

    def test_ticker_rejects_non_positive_period(self) -> None:
        with pytest.raises(ValueError):
            MockClock().ticker(0)


class TestSystemClock:
    def test_now_is_utc(self) -> None:
        assert SystemClock().now().utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_ticker_waits_one_period(self) -> None:
        ticker = SystemClock().ticker(0.01)
        loop = asyncio.get_running_loop()
        start = loop.time()

        await ticker.wait()

        assert loop.time() - start >= 0.005
        ticker.stop()
