import asyncio
from typing import Iterable, List, Optional

from levercalc.config import (
    LINEAR, TRENDING_LIMIT, TRENDING_MIN_VOLUME, HOT_CHANGE_PERCENT,
    TRENDING_REFRESH_SECONDS, TRENDING_TICK_SECONDS,
)
from levercalc.logger import log
from levercalc.models import Instrument, Ticker, TrendingPair
from levercalc.tasks import PeriodicTask


def rank_trending(instruments: Iterable[Instrument], tickers: Iterable[Ticker],
                  min_volume: float = TRENDING_MIN_VOLUME, limit: int = TRENDING_LIMIT,
                  hot_threshold: float = HOT_CHANGE_PERCENT) -> List[TrendingPair]:
    """Top USDT perpetuals by 24h volume, flagged hot on big moves."""
    by_symbol = {i.base_symbol: i for i in instruments}

    pairs = []
    for ticker in tickers:
        instrument = by_symbol.get(ticker.symbol)
        if instrument is None or not ticker.symbol.endswith('USDT'):
            continue
        if ticker.volume_24h <= min_volume or ticker.last_price <= 0:
            continue
        pairs.append(TrendingPair(
            instrument=instrument,
            last_price=ticker.last_price,
            price_change_percent=ticker.price_change_percent,
            volume_24h=ticker.volume_24h,
            is_hot=round(abs(ticker.price_change_percent), 6) > hot_threshold,
        ))

    pairs.sort(key=lambda p: p.volume_24h, reverse=True)
    return pairs[:limit]


async def fetch_trending(client) -> Optional[List[TrendingPair]]:
    """
    None when either request is unavailable or comes back empty. Bybit answers
    rate limits with a non-zero retCode and no rows, which is a failed refresh.
    """
    instruments, tickers = await asyncio.gather(
        client.list_instruments(LINEAR),
        client.list_tickers(LINEAR),
    )
    if not instruments or not tickers:
        return None
    return rank_trending(instruments, tickers)


class Countdown:
    """
    Cosmetic progress bar for the next trending refresh: 100 -> 0 over one
    refresh interval, one step per tick, wraps back to full.
    """

    def __init__(self, interval: float = TRENDING_REFRESH_SECONDS, tick: float = TRENDING_TICK_SECONDS):
        self.step = 100.0 / (interval / tick)
        self.progress = 100.0

    def tick(self) -> float:
        self.progress -= self.step
        if self.progress <= 1e-9:
            self.progress = 100.0
        return self.progress

    def reset(self):
        self.progress = 100.0

    @property
    def fraction(self) -> float:
        return self.progress / 100.0


class TrendingBoard:
    """Trending pairs shown while nothing is selected."""

    def __init__(self, client, interval: float = TRENDING_REFRESH_SECONDS):
        self.client = client
        self.pairs: List[TrendingPair] = []
        self.loading = False
        self.revision = 0
        self.countdown = Countdown(interval)
        self._task = PeriodicTask(interval, self.refresh, name="trending", run_immediately=True)

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self):
        self._task.start()

    def stop(self):
        self._task.stop()
        self.loading = False

    async def refresh(self):
        self.countdown.reset()
        self.loading = True
        try:
            pairs = await fetch_trending(self.client)
        finally:
            self.loading = False

        if pairs is None:
            # keep whatever we showed last time
            log.warning("⚠️ Trending refresh failed, keeping previous data")
            return
        self.pairs = pairs
        self.revision += 1
        log.info(f"✅ Trending updated: {len(pairs)} pairs")
