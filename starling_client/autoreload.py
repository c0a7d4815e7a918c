"""
Autoreload scheduling for the Starling editor client.

Contains a repeating loop timer and the AutoreloadScheduler, which keeps one
timer per note buffer asking the editor to recheck the file on disk.
"""

import asyncio
from collections.abc import Hashable
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


class RecurringTimer:
    """Repeating timer on an asyncio loop: fires after ``delay``, then every ``period``."""

    def __init__(
        self,
        delay: float,
        period: float,
        callback: Callable[[], None],
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.delay = delay
        self.period = period
        self.callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self.stop()
        self._handle = self._loop.call_later(self.delay, self._fire)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        # Re-arm first so a failing callback doesn't kill the timer
        self._handle = self._loop.call_later(self.period, self._fire)
        try:
            self.callback()
        except Exception as e:
            logger.warning("timer_callback_failed", error=str(e))


class AutoreloadScheduler:
    """Per-buffer recheck timers.

    Holds at most one timer per buffer: starting a buffer that already has one
    stops the old timer first. Ticks for buffers that aren't focused are
    skipped.
    """

    def __init__(
        self,
        current_buffer: Callable[[], Hashable],
        recheck: Callable[[], None],
        interval: float = 1.0,
    ):
        self.current_buffer = current_buffer
        self.recheck = recheck
        self.interval = interval
        self._timers: dict[Hashable, RecurringTimer] = {}

    def __contains__(self, buf: Hashable) -> bool:
        return buf in self._timers

    def __len__(self) -> int:
        return len(self._timers)

    def start(self, buf: Hashable) -> RecurringTimer:
        """Start rechecking ``buf`` every interval, replacing any existing timer."""
        self.stop(buf)

        timer = RecurringTimer(self.interval, self.interval, lambda: self._tick(buf))
        self._timers[buf] = timer
        timer.start()
        logger.debug("autoreload_started", buffer=buf)
        return timer

    def stop(self, buf: Hashable) -> None:
        """Stop rechecking ``buf``. Does nothing if no timer is registered."""
        timer = self._timers.pop(buf, None)
        if timer is not None:
            timer.stop()
            logger.debug("autoreload_stopped", buffer=buf)

    def stop_all(self) -> None:
        for buf in list(self._timers):
            self.stop(buf)

    def recheck_after_write(self, delay: float = 0.5) -> asyncio.TimerHandle:
        """Recheck once, ``delay`` seconds after a write, so the server's fixes show up."""
        return asyncio.get_running_loop().call_later(delay, self.recheck)

    def _tick(self, buf: Hashable) -> None:
        if self.current_buffer() == buf:
            self.recheck()
