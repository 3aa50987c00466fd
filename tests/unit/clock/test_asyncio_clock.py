"""Tests for AsyncioClock and AsyncioTimer."""

import asyncio
import logging

import pytest

from slot_scheduler.clock import AsyncioClock
from slot_scheduler.protocols import ClockProtocol, TimerHandle


class TestAsyncioClock:
    """Tests for the event-loop backed clock."""

    def test_satisfies_protocol(self):
        assert isinstance(AsyncioClock(), ClockProtocol)

    def test_now_is_monotonic(self):
        clock = AsyncioClock()

        first = clock.now()
        second = clock.now()

        assert second >= first

    @pytest.mark.asyncio
    async def test_callback_runs_after_delay(self):
        clock = AsyncioClock()
        done = asyncio.Event()

        async def callback():
            done.set()

        timer = clock.call_later(0.01, callback)
        assert isinstance(timer, TimerHandle)

        await asyncio.wait_for(done.wait(), timeout=1.0)
        await clock.wait_for_callbacks()

        assert timer.fired
        assert not timer.cancelled()
        assert clock.pending_callbacks == 0

    @pytest.mark.asyncio
    async def test_cancel_prevents_callback(self):
        clock = AsyncioClock()
        ran = []

        async def callback():
            ran.append(True)

        timer = clock.call_later(0.01, callback)
        timer.cancel()
        await asyncio.sleep(0.05)

        assert timer.cancelled()
        assert not timer.fired
        assert ran == []

    @pytest.mark.asyncio
    async def test_negative_delay_runs_soon(self):
        clock = AsyncioClock()
        done = asyncio.Event()

        async def callback():
            done.set()

        clock.call_later(-1, callback)

        await asyncio.wait_for(done.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_callback_can_take_locks(self):
        """Callbacks run on their own task and may wait on the caller's lock."""
        clock = AsyncioClock()
        lock = asyncio.Lock()
        order = []

        async def callback():
            async with lock:
                order.append("callback")

        async with lock:
            clock.call_later(0, callback)
            await asyncio.sleep(0.02)
            order.append("holder")

        await asyncio.sleep(0)
        await clock.wait_for_callbacks()

        assert order == ["holder", "callback"]

    @pytest.mark.asyncio
    async def test_failing_callback_is_logged(self, caplog):
        clock = AsyncioClock()

        async def callback():
            raise RuntimeError("timer exploded")

        with caplog.at_level(logging.ERROR, logger="slot_scheduler.clock.asyncio_clock"):
            clock.call_later(0, callback)
            await asyncio.sleep(0.02)
            await clock.wait_for_callbacks()

        assert "Timer callback failed" in caplog.text
        assert "timer exploded" in caplog.text
