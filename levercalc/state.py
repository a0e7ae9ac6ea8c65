import math
from dataclasses import dataclass, field
from typing import List, Optional

from levercalc.calculator import calculate_results
from levercalc.config import LONG, POSITION_TYPES, MAX_TARGETS, DEFAULT_MIN_LEVERAGE
from levercalc.models import Instrument, TargetResult


def _empty_targets() -> List[str]:
    return [''] * MAX_TARGETS


@dataclass
class CalculatorState:
    """
    Per-page user selection. Inputs are kept as typed so the shareable link
    and the input boxes show exactly what the user entered.
    """
    instrument: Optional[Instrument] = None
    position_type: str = LONG
    leverage: float = DEFAULT_MIN_LEVERAGE
    entry_amount: str = ''
    targets: List[str] = field(default_factory=_empty_targets)

    def select(self, instrument: Instrument):
        self.instrument = instrument
        self.leverage = instrument.min_leverage

    def set_position_type(self, value: str):
        if value in POSITION_TYPES:
            self.position_type = value

    def set_leverage(self, value) -> float:
        try:
            value = float(value)
        except (TypeError, ValueError):
            return self.leverage
        if not math.isfinite(value):
            return self.leverage
        if self.instrument is not None:
            value = self.instrument.clamp_leverage(value)
        self.leverage = value
        return self.leverage

    def set_entry_amount(self, value):
        self.entry_amount = '' if value is None else str(value).strip()

    def set_target(self, index: int, value):
        """index is 0-based"""
        self.targets[index] = '' if value is None else str(value).strip()

    def reset(self):
        self.instrument = None
        self.position_type = LONG
        self.leverage = DEFAULT_MIN_LEVERAGE
        self.entry_amount = ''
        self.targets = _empty_targets()

    def results(self, current_price) -> List[TargetResult]:
        return calculate_results(
            self.instrument, current_price, self.entry_amount,
            self.leverage, self.position_type, self.targets,
        )
