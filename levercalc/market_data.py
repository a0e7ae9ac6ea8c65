import asyncio
from typing import List, Optional

import aiohttp

from levercalc.config import (
    BYBIT_API_URL, HTTP_TIMEOUT, INSTRUMENTS_PATH, TICKERS_PATH,
    LINEAR, INVERSE, CATEGORY_LABELS, INVERSE_SUFFIX,
    DEFAULT_MIN_LEVERAGE, DEFAULT_MAX_LEVERAGE,
)
from levercalc.logger import log
from levercalc.models import Instrument, Ticker

TRADING_STATUS = 'Trading'


def _float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_instrument(item: dict, category: str) -> Optional[Instrument]:
    """
    Bybit instruments-info row -> Instrument.
    Only tradable contracts that actually allow leverage (> 1x) are kept.
    """
    symbol = item.get('symbol') or ''
    leverage_filter = item.get('leverageFilter')
    if not symbol or item.get('status') != TRADING_STATUS or not leverage_filter:
        return None

    max_leverage = _float(leverage_filter.get('maxLeverage'), DEFAULT_MAX_LEVERAGE)
    if max_leverage <= 1:
        return None

    return Instrument(
        symbol=symbol + INVERSE_SUFFIX if category == INVERSE else symbol,
        base_symbol=symbol,
        category=category,
        category_label=CATEGORY_LABELS.get(category, category),
        min_leverage=_float(leverage_filter.get('minLeverage'), DEFAULT_MIN_LEVERAGE),
        max_leverage=max_leverage,
    )


def parse_ticker(item: dict) -> Optional[Ticker]:
    symbol = item.get('symbol')
    if not symbol:
        return None
    return Ticker(
        symbol=symbol,
        last_price=_float(item.get('lastPrice')),
        # Bybit sends the 24h change as a fraction ("0.0123" == 1.23%)
        price_change_percent=_float(item.get('price24hPcnt')) * 100,
        volume_24h=_float(item.get('volume24h')),
    )


class BybitMarketClient:
    """
    Public Bybit v5 market endpoints.

    List calls return None when the API is unavailable (network, timeout,
    broken JSON) and [] when the API answered without data (retCode != 0 or
    an empty list). Callers use the difference to choose between an error
    message and an empty state. Nothing is raised.
    """

    def __init__(self, base_url: str = BYBIT_API_URL, timeout: float = HTTP_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    async def _get_json(self, path: str, params: dict):
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(f"{self.base_url}{path}", params=params) as response:
                response.raise_for_status()
                return await response.json(content_type=None)

    async def _get_list(self, path: str, params: dict) -> Optional[list]:
        try:
            payload = await self._get_json(path, params)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.warning(f"⚠️ Bybit unavailable {path} {params}: {e!r}")
            return None

        if not isinstance(payload, dict) or payload.get('retCode') != 0:
            ret_code = payload.get('retCode') if isinstance(payload, dict) else None
            ret_msg = payload.get('retMsg') if isinstance(payload, dict) else None
            log.warning(f"⚠️ Bybit API Error {path} {params}: retCode={ret_code} {ret_msg}")
            return []

        result = payload.get('result') or {}
        return result.get('list') or []

    async def list_instruments(self, category: str) -> Optional[List[Instrument]]:
        rows = await self._get_list(INSTRUMENTS_PATH, {'category': category})
        if rows is None:
            return None

        instruments = []
        for item in rows:
            instrument = parse_instrument(item, category)
            if instrument:
                instruments.append(instrument)
        log.debug(f"Instruments [{category}]: {len(instruments)} tradable of {len(rows)}")
        return instruments

    async def list_tickers(self, category: str) -> Optional[List[Ticker]]:
        rows = await self._get_list(TICKERS_PATH, {'category': category})
        if rows is None:
            return None
        return [t for t in (parse_ticker(item) for item in rows) if t]

    async def fetch_ticker(self, symbol: str, category: str = LINEAR) -> Optional[Ticker]:
        rows = await self._get_list(TICKERS_PATH, {'category': category, 'symbol': symbol})
        if not rows:
            return None
        return parse_ticker(rows[0])

    async def get_price(self, symbol: str, category: str = LINEAR) -> Optional[float]:
        ticker = await self.fetch_ticker(symbol, category)
        if ticker is None or ticker.last_price <= 0:
            return None
        return ticker.last_price
