"""Timer scheduling for the widget's UI timers.

Everything time-based on the client side (audio gaps, the duration tick,
the success panel) goes through a Scheduler so tests can drive it with a
fake clock instead of sleeping.
"""

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def time(self) -> float: ...


class AsyncioScheduler:
    """Default scheduler backed by the running event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def time(self) -> float:
        return self.loop.time()


class Repeater:
    """Re-arms a callback every `interval` seconds until cancelled."""

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._handle: TimerHandle | None = None
        self._cancelled = False
        self._arm()

    def _arm(self) -> None:
        self._handle = self._scheduler.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._callback()
        if not self._cancelled:
            self._arm()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
