import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Scheduler:
    """Timers on the running asyncio loop (seconds, like loop.time())."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)


class Debouncer:
    """Runs `callback` once calls stop arriving for `delay` seconds."""

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[[], Any]) -> None:
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self) -> None:
        self.cancel()
        self._handle = self.scheduler.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.callback()


class RenderQueue:
    """
    Single-flight re-render requests.

    A request made while a render is running is remembered (at most one) and
    served right after the current pass finishes.
    """

    def __init__(self, render: Callable[[], Any]) -> None:
        self._render = render
        self._running = False
        self._pending = False

    @property
    def running(self) -> bool:
        return self._running

    def request(self) -> None:
        if self._running:
            self._pending = True
            return

        self._running = True
        try:
            while True:
                self._pending = False
                self._render()
                if not self._pending:
                    break
                logger.debug("Serving queued re-render")
        finally:
            self._running = False
            self._pending = False
