"""Tests for the asyncio-backed scheduler."""

import asyncio

import pytest

from stompwire.utilities.timers import LoopScheduler


class TestLoopScheduler:
    @pytest.mark.asyncio
    async def test_one_shot(self):
        scheduler = LoopScheduler()
        fired = []
        scheduler.schedule(0.01, lambda: fired.append(1))
        await asyncio.sleep(0.05)
        assert fired == [1]
        assert len(scheduler) == 0

    @pytest.mark.asyncio
    async def test_cancel(self):
        scheduler = LoopScheduler()
        fired = []
        handle = scheduler.schedule(0.01, lambda: fired.append(1))
        scheduler.cancel(handle)
        scheduler.cancel(handle)
        await asyncio.sleep(0.05)
        assert fired == []
        assert handle.cancelled

    @pytest.mark.asyncio
    async def test_repeating_until_cancelled(self):
        scheduler = LoopScheduler()
        fired = []
        handle = scheduler.schedule(0.01, lambda: fired.append(1), repeating=True)
        await asyncio.sleep(0.1)
        scheduler.cancel(handle)
        count = len(fired)
        await asyncio.sleep(0.05)
        assert count >= 2
        assert len(fired) == count

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_repeating(self):
        scheduler = LoopScheduler()
        calls = []

        def broken():
            calls.append(1)
            raise RuntimeError("boom")

        handle = scheduler.schedule(0.01, broken, repeating=True)
        await asyncio.sleep(0.08)
        scheduler.cancel(handle)
        assert len(calls) >= 2
