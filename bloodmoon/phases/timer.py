"""Cancellable one-second countdown driving each phase."""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class PhaseTimer:
    """Counts down once per second and fires a callback at zero.

    With a running event loop the ticks are scheduled with ``call_later``.
    Without one, nothing is scheduled and the owner calls ``tick()`` itself.
    Starting or cancelling always drops the pending tick first, so at most one
    expiry callback can be waiting at any time.
    """

    def __init__(self, on_tick: Callable[[int], None] | None = None) -> None:
        self.remaining = 0
        self.on_tick = on_tick
        self._callback: Callable[[], None] | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, seconds: int, callback: Callable[[], None]) -> None:
        self.cancel()
        self.remaining = seconds
        self._callback = callback
        self._schedule()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._callback = None

    def tick(self) -> None:
        """Advance the countdown by one second."""
        self._handle = None
        if self._callback is None:
            return
        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            self._fire()
        else:
            self._schedule()
        if self.on_tick is not None:
            self.on_tick(self.remaining)

    def skip(self) -> bool:
        """Expire now through the same path as a natural expiry.

        Returns False if nothing was pending.
        """
        if self._callback is None:
            return False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.remaining = 0
        if self.on_tick is not None:
            self.on_tick(0)
        self._fire()
        return True

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        callback()

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._handle = loop.call_later(TICK_SECONDS, self.tick)
