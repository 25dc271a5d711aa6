from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TaskHandle(Protocol):
    cancelled: bool

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle: ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle: ...


class LoopHandle:
    """One-shot or repeating timer on the running asyncio loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, delay: float, callback: Callable[[], None], repeat: bool) -> None:
        self.cancelled = False
        self._loop = loop
        self._delay = delay
        self._callback = callback
        self._repeat = repeat
        self._timer: Optional[asyncio.TimerHandle] = loop.call_later(delay, self._fire)

    def _fire(self) -> None:
        if self.cancelled:
            return
        if self._repeat:
            self._timer = self._loop.call_later(self._delay, self._fire)
        else:
            self._timer = None
        try:
            self._callback()
        except Exception:
            logger.exception("timer callback failed")

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioScheduler:
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> LoopHandle:
        return LoopHandle(self._get_loop(), delay, callback, repeat=False)

    def call_every(self, interval: float, callback: Callable[[], None]) -> LoopHandle:
        return LoopHandle(self._get_loop(), interval, callback, repeat=True)


def cancel_handle(handle: Optional[TaskHandle]) -> None:
    if handle is not None:
        handle.cancel()
