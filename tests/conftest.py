"""
Shared fixtures for the leverage calculator test suite.

The network is replaced by FakeBybit, a BybitMarketClient whose transport
returns canned Bybit v5 envelopes, so parsing and filtering run for real.

Run tests with: pytest -v
"""

import asyncio
import sys
from pathlib import Path

import pytest

pytest_plugins = ["nicegui.testing.user_plugin"]

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from levercalc.config import INSTRUMENTS_PATH, TICKERS_PATH, LINEAR, INVERSE
from levercalc.market_data import BybitMarketClient
from levercalc.models import Instrument


# =============================================================================
# BYBIT PAYLOAD HELPERS
# =============================================================================

def envelope(rows, ret_code=0, ret_msg="OK"):
    return {"retCode": ret_code, "retMsg": ret_msg, "result": {"list": rows}}


def instrument_row(symbol, status="Trading", min_leverage="1", max_leverage="100"):
    row = {"symbol": symbol, "status": status}
    if min_leverage is not None or max_leverage is not None:
        row["leverageFilter"] = {
            "minLeverage": min_leverage,
            "maxLeverage": max_leverage,
            "leverageStep": "0.01",
        }
    return row


def ticker_row(symbol, last_price, change_fraction="0", volume="0"):
    return {
        "symbol": symbol,
        "lastPrice": str(last_price),
        "price24hPcnt": str(change_fraction),
        "volume24h": str(volume),
    }


class FakeBybit(BybitMarketClient):
    """
    Canned responses keyed by (path, category). A value may be an envelope
    dict or an exception instance to raise.
    """

    def __init__(self, responses=None):
        super().__init__(base_url="https://api.bybit.test")
        self.responses = responses or {}
        self.calls = []

    async def _get_json(self, path, params):
        self.calls.append((path, dict(params)))
        response = self.responses.get((path, params.get("category")))
        if isinstance(response, Exception):
            raise response
        if response is None:
            return envelope([])

        symbol = params.get("symbol")
        if symbol and response.get("retCode") == 0:
            rows = [r for r in response["result"]["list"] if r.get("symbol") == symbol]
            return envelope(rows)
        return response


class ScriptedPrices:
    """get_price() returns the next scripted value; the last one repeats."""

    def __init__(self, prices):
        self.prices = list(prices)
        self.calls = []

    async def get_price(self, symbol, category=LINEAR):
        self.calls.append((symbol, category))
        value = self.prices.pop(0) if len(self.prices) > 1 else self.prices[0]
        if isinstance(value, Exception):
            raise value
        return value


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def linear_rows():
    return [
        instrument_row("BTCUSDT", min_leverage="1", max_leverage="100"),
        instrument_row("ETHUSDT", min_leverage="1", max_leverage="100"),
        instrument_row("SOLUSDT", min_leverage="1", max_leverage="50"),
        instrument_row("BTCPERP", max_leverage="100"),          # wrong quote
        instrument_row("BTC-26DEC25", max_leverage="100"),      # dated future
        instrument_row("OLDUSDT", status="Closed"),
        instrument_row("FLATUSDT", max_leverage="1"),
    ]


@pytest.fixture
def inverse_rows():
    return [
        instrument_row("BTCUSD", min_leverage="1", max_leverage="100"),
        instrument_row("ETHUSD", min_leverage="1", max_leverage="50"),
    ]


@pytest.fixture
def linear_tickers():
    return [
        ticker_row("BTCUSDT", 50000, "0.012", "95000000"),
        ticker_row("ETHUSDT", 3000, "-0.061", "45000000"),
        ticker_row("SOLUSDT", 150, "0.08", "9000000"),
    ]


@pytest.fixture
def bybit(linear_rows, inverse_rows, linear_tickers):
    return FakeBybit({
        (INSTRUMENTS_PATH, LINEAR): envelope(linear_rows),
        (INSTRUMENTS_PATH, INVERSE): envelope(inverse_rows),
        (TICKERS_PATH, LINEAR): envelope(linear_tickers),
        (TICKERS_PATH, INVERSE): envelope([ticker_row("BTCUSD", 49990, "0.01", "1200000")]),
    })


@pytest.fixture
def btc_linear():
    return Instrument(
        symbol="BTCUSDT", base_symbol="BTCUSDT", category=LINEAR,
        category_label="USDT Perpetual", min_leverage=1.0, max_leverage=100.0,
    )


@pytest.fixture
def eth_inverse():
    return Instrument(
        symbol="ETHUSD.I", base_symbol="ETHUSD", category=INVERSE,
        category_label="Inverse Perpetual", min_leverage=1.0, max_leverage=50.0,
    )


def run(coro):
    return asyncio.run(coro)
