import asyncio

import pytest

from voicelead.scheduler import AsyncioScheduler, Repeater


class TestRepeater:
    def test_fires_every_interval(self, clock):
        ticks = []
        Repeater(clock, 1.0, lambda: ticks.append(clock.time()))
        clock.advance(3)
        assert ticks == [1.0, 2.0, 3.0]

    def test_cancel_stops_future_ticks(self, clock):
        ticks = []
        r = Repeater(clock, 1.0, lambda: ticks.append(1))
        clock.advance(2)
        r.cancel()
        clock.advance(5)
        assert len(ticks) == 2
        assert clock.pending == []

    def test_cancel_from_inside_callback(self, clock):
        ticks = []

        def tick():
            ticks.append(1)
            r.cancel()

        r = Repeater(clock, 1.0, tick)
        clock.advance(5)
        assert ticks == [1]


@pytest.mark.asyncio
async def test_asyncio_scheduler_runs_callback():
    scheduler = AsyncioScheduler()
    fired = asyncio.Event()
    scheduler.call_later(0.01, fired.set)
    await asyncio.wait_for(fired.wait(), timeout=1)
    assert scheduler.time() > 0


@pytest.mark.asyncio
async def test_asyncio_scheduler_cancel():
    scheduler = AsyncioScheduler()
    fired = []
    handle = scheduler.call_later(0.01, lambda: fired.append(True))
    handle.cancel()
    await asyncio.sleep(0.03)
    assert fired == []
