"""
Cancelable asyncio scheduling used by the page: fixed-rate loops for
polling and a trailing-edge debouncer for typing.
"""
import asyncio
from typing import Awaitable, Callable, Optional

from levercalc.logger import log


class PeriodicTask:
    """Runs `callback` every `interval` seconds until stopped."""

    def __init__(self, interval: float, callback: Callable[[], Awaitable], name: str = "task",
                 run_immediately: bool = False):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.run_immediately = run_immediately
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)

    def stop(self):
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run_once(self):
        try:
            await self.callback()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error(f"❌ {self.name} run failed: {e!r}")

    def _next_deadline(self, deadline: float, now: float) -> float:
        deadline += self.interval
        if deadline < now:
            # overran one or more slots: skip them, keep the phase
            missed = (now - deadline) // self.interval + 1
            deadline += missed * self.interval
        return deadline

    async def _loop(self):
        """Fixed-rate: the k-th run starts at start + k * interval, however long each run takes."""
        log.debug(f"{self.name} started (every {self.interval}s)")
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        try:
            if self.run_immediately:
                await self._run_once()
            while True:
                deadline = self._next_deadline(deadline, loop.time())
                await asyncio.sleep(deadline - loop.time())
                await self._run_once()
        except asyncio.CancelledError:
            log.debug(f"{self.name} stopped")
            raise


class Debouncer:
    """
    Trailing-edge debounce: each trigger() replaces the pending call, which
    only fires once `delay` seconds pass without another trigger.
    """

    def __init__(self, delay: float, callback: Callable[..., Awaitable]):
        self.delay = delay
        self.callback = callback
        self.generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self, *args) -> int:
        self.cancel()
        self.generation += 1
        self._task = asyncio.create_task(self._fire(args))
        return self.generation

    def cancel(self):
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _fire(self, args):
        await asyncio.sleep(self.delay)
        await self.callback(*args)
