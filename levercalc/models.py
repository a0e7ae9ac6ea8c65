from dataclasses import dataclass

from levercalc.config import LINEAR


@dataclass(frozen=True)
class Instrument:
    """
    A perpetual contract as listed by the exchange.
    symbol - display symbol (inverse contracts get a '.I' suffix),
    base_symbol - exchange symbol used for API calls and the shareable link.
    """
    symbol: str
    base_symbol: str
    category: str
    category_label: str
    min_leverage: float
    max_leverage: float

    @property
    def is_linear(self) -> bool:
        return self.category == LINEAR

    def clamp_leverage(self, value: float) -> float:
        return min(max(value, self.min_leverage), self.max_leverage)


@dataclass(frozen=True)
class Ticker:
    symbol: str
    last_price: float
    price_change_percent: float
    volume_24h: float


@dataclass(frozen=True)
class TrendingPair:
    instrument: Instrument
    last_price: float
    price_change_percent: float
    volume_24h: float
    is_hot: bool = False

    @property
    def symbol(self) -> str:
        return self.instrument.symbol


@dataclass(frozen=True)
class TargetResult:
    target_index: int
    target_price: float
    pnl: float
    roi: float
    fees: float
    final_amount: float

    @property
    def is_profit(self) -> bool:
        return self.pnl >= 0
