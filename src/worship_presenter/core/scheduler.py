"""Cancellable timers for the overlay tools.

The overlay tools never touch the event loop directly. They ask a
``Scheduler`` for one-shot or repeating timers and keep the returned handle
to cancel them. ``AsyncioScheduler`` runs inside the UI's event loop;
``ManualScheduler`` is a virtual clock that only moves when ``advance`` is
called, which makes timer behavior reproducible without sleeping.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

from worship_presenter.logging_config import get_logger

logger = get_logger(__name__)


class TimerHandle:
    """Handle to a scheduled timer."""

    def __init__(self, callback: Callable[[], None], interval: Optional[float] = None):
        self.callback = callback
        self.interval = interval
        self._cancelled = False
        self._loop_handle: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        """Whether the timer has been cancelled."""
        return self._cancelled

    @property
    def repeating(self) -> bool:
        """Whether the timer fires repeatedly."""
        return self.interval is not None

    def cancel(self) -> None:
        """Cancel the timer. Cancelling twice is harmless."""
        self._cancelled = True
        if self._loop_handle is not None:
            self._loop_handle.cancel()
            self._loop_handle = None

    def fire(self) -> None:
        """Run the callback unless cancelled.

        Exceptions are logged so a failing callback cannot kill the loop
        that drives every other timer.
        """
        if self._cancelled:
            return
        try:
            self.callback()
        except Exception:
            logger.exception("Timer callback failed")


class Scheduler(ABC):
    """Source of time and timers."""

    @abstractmethod
    def now(self) -> datetime:
        """Current wall-clock time."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` every ``interval`` seconds until cancelled."""


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> datetime:
        return datetime.now()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        handle._loop_handle = self.loop.call_later(delay, handle.fire)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, interval=interval)

        def tick() -> None:
            if handle.cancelled:
                return
            handle.fire()
            if not handle.cancelled:
                handle._loop_handle = self.loop.call_later(interval, tick)

        handle._loop_handle = self.loop.call_later(interval, tick)
        return handle


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler driven by ``advance``.

    Attributes:
        current_time: The virtual wall-clock time
    """

    def __init__(self, start: Optional[datetime] = None):
        self.current_time = start or datetime(2024, 1, 7, 10, 0, 0)
        self._timers: list[tuple[datetime, int, TimerHandle]] = []
        self._sequence = itertools.count()

    def now(self) -> datetime:
        return self.current_time

    def _push(self, due: datetime, handle: TimerHandle) -> None:
        heapq.heappush(self._timers, (due, next(self._sequence), handle))

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        self._push(self.current_time + timedelta(seconds=delay), handle)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, interval=interval)
        self._push(self.current_time + timedelta(seconds=interval), handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of timers that have not been cancelled."""
        return sum(1 for _, _, handle in self._timers if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order.

        Args:
            seconds: How far to move the clock
        """
        target = self.current_time + timedelta(seconds=seconds)

        while self._timers and self._timers[0][0] <= target:
            due, _, handle = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            self.current_time = due
            handle.fire()
            if handle.repeating and not handle.cancelled:
                self._push(due + timedelta(seconds=handle.interval), handle)

        self.current_time = target
