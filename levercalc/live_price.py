import asyncio
from datetime import datetime
from typing import Optional

from levercalc.config import PRICE_POLL_SECONDS, PRICE_FLASH_SECONDS
from levercalc.logger import log
from levercalc.models import Instrument
from levercalc.tasks import PeriodicTask

IDLE = 'idle'
ACTIVE = 'active'

UP = 'up'
DOWN = 'down'
UNCHANGED = 'unchanged'

PRICE_FAILED_MESSAGE = "Failed to fetch current price for this pair."


class LivePriceMonitor:
    """
    Polls the last price of the selected instrument.

    idle   - nothing selected, no polling
    active - immediate fetch on start, then one poll every `interval` seconds

    Every update after the first sets `direction` for `flash_seconds`. The
    clear is keyed to the update that set it, so an older clear never wipes
    a newer flash.
    """

    def __init__(self, client, interval: float = PRICE_POLL_SECONDS,
                 flash_seconds: float = PRICE_FLASH_SECONDS):
        self.client = client
        self.interval = interval
        self.flash_seconds = flash_seconds

        self.state = IDLE
        self.instrument: Optional[Instrument] = None
        self.price: Optional[float] = None
        self.previous_price: Optional[float] = None
        self.direction: Optional[str] = None
        self.last_update: Optional[datetime] = None
        self.revision = 0

        self._generation = 0
        self._flash_generation = 0
        self._flash_handle: Optional[asyncio.TimerHandle] = None
        self._task = PeriodicTask(interval, self.poll, name="live-price")

    @property
    def active(self) -> bool:
        return self.state == ACTIVE

    def _reset_price(self):
        self.price = None
        self.previous_price = None
        self.direction = None
        self.last_update = None
        self._cancel_flash()
        self.revision += 1

    async def start(self, instrument: Instrument, surface_errors: bool = True) -> Optional[str]:
        """
        Select `instrument` and begin polling. Returns an error message when
        the first fetch fails and `surface_errors` is set; the monitor then
        stays idle.
        """
        self.stop()
        self.instrument = instrument
        self._reset_price()
        generation = self._generation

        price = await self.client.get_price(instrument.base_symbol, instrument.category)
        if generation != self._generation:
            return None  # superseded while fetching

        if price is None and surface_errors:
            log.warning(f"⚠️ No price for {instrument.base_symbol}, live updates off")
            return PRICE_FAILED_MESSAGE

        if price is not None:
            self._apply(price)

        self.state = ACTIVE
        self._task.start()
        log.info(f"📈 Live price on: {instrument.symbol} every {self.interval}s")
        return None

    def stop(self):
        self._generation += 1
        self._task.stop()
        self._cancel_flash()
        if self.state == ACTIVE:
            log.info(f"Live price off: {self.instrument.symbol if self.instrument else '-'}")
        self.state = IDLE

    def clear(self):
        """Back to idle with nothing selected."""
        self.stop()
        self.instrument = None
        self._reset_price()

    async def poll(self):
        if self.instrument is None:
            return
        generation = self._generation
        try:
            price = await self.client.get_price(self.instrument.base_symbol, self.instrument.category)
        except Exception as e:
            log.debug(f"Live price poll failed: {e!r}")
            return
        if price is None or generation != self._generation:
            return
        self._apply(price)

    def _apply(self, price: float):
        if self.price is not None:
            self.previous_price = self.price
            if price > self.price:
                self._flash(UP)
            elif price < self.price:
                self._flash(DOWN)
            else:
                self._flash(UNCHANGED)
        self.price = price
        self.last_update = datetime.now()
        self.revision += 1

    def _flash(self, direction: str):
        self._cancel_flash()
        self._flash_generation += 1
        self.direction = direction
        loop = asyncio.get_running_loop()
        self._flash_handle = loop.call_later(self.flash_seconds, self._clear_flash, self._flash_generation)

    def _clear_flash(self, generation: int):
        if generation != self._flash_generation:
            return
        self.direction = None
        self._flash_handle = None
        self.revision += 1

    def _cancel_flash(self):
        if self._flash_handle is not None:
            self._flash_handle.cancel()
            self._flash_handle = None
        self._flash_generation += 1
        self.direction = None
