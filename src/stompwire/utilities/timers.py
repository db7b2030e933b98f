"""Timer scheduling for connect timeouts and heartbeat checks."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]


class TimerHandle:
    """Handle for a scheduled callback, used to cancel it."""

    def __init__(self, delay: float, callback: TimerCallback, repeating: bool = False):
        self.delay = delay
        self.callback = callback
        self.repeating = repeating
        self.cancelled = False

    def __repr__(self) -> str:
        kind = "repeating" if self.repeating else "once"
        return f"TimerHandle({self.delay}s, {kind}, cancelled={self.cancelled})"


class Scheduler(ABC):
    """Schedules delayed and periodic callbacks."""

    @abstractmethod
    def schedule(
        self,
        delay: float,
        callback: TimerCallback,
        repeating: bool = False,
    ) -> TimerHandle:
        """
        Run callback after delay seconds.

        Args:
            delay: Delay in seconds.
            callback: Function to call.
            repeating: Re-arm with the same delay after each run.

        Returns:
            Handle for cancel().
        """
        pass

    @abstractmethod
    def cancel(self, handle: TimerHandle) -> None:
        """Cancel a scheduled callback. Safe to call more than once."""
        pass


class LoopScheduler(Scheduler):
    """Scheduler backed by asyncio's loop.call_later()."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._pending: dict[TimerHandle, asyncio.TimerHandle] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(
        self,
        delay: float,
        callback: TimerCallback,
        repeating: bool = False,
    ) -> TimerHandle:
        handle = TimerHandle(delay, callback, repeating)
        self._arm(handle)
        return handle

    def _arm(self, handle: TimerHandle) -> None:
        self._pending[handle] = self._get_loop().call_later(
            handle.delay, self._fire, handle
        )

    def _fire(self, handle: TimerHandle) -> None:
        self._pending.pop(handle, None)
        if handle.cancelled:
            return
        if handle.repeating:
            self._arm(handle)
        try:
            handle.callback()
        except Exception:
            logger.exception(f"Timer callback failed: {handle}")

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True
        timer = self._pending.pop(handle, None)
        if timer is not None:
            timer.cancel()

    def __len__(self) -> int:
        """Number of armed timers."""
        return len(self._pending)
