"""
Profit / loss engine.

Everything here is pure: results are recomputed from the raw inputs on every
change and nothing is cached.
"""
import math
from typing import List, Optional, Sequence

from levercalc.config import LONG, MAX_TARGETS, TAKER_FEE_RATE
from levercalc.models import Instrument, TargetResult


def parse_positive(value) -> Optional[float]:
    """Number or numeric text -> float; None if absent, non-numeric or <= 0"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(',', '')
        if not value:
            return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num) or num <= 0:
        return None
    return num


def calculate_target(
    entry_amount: float,
    leverage: float,
    position_type: str,
    current_price: float,
    target_price: float,
    target_index: int = 1,
    fee_rate: float = TAKER_FEE_RATE,
) -> TargetResult:
    position_size = entry_amount * leverage
    quantity = position_size / current_price

    if position_type == LONG:
        raw_pnl = (target_price - current_price) * quantity
    else:
        raw_pnl = (current_price - target_price) * quantity

    # taker fee on entry notional and on exit notional
    entry_fee = position_size * fee_rate
    exit_fee = quantity * target_price * fee_rate
    fees = entry_fee + exit_fee

    net_pnl = raw_pnl - fees
    return TargetResult(
        target_index=target_index,
        target_price=target_price,
        pnl=net_pnl,
        roi=net_pnl / entry_amount * 100,
        fees=fees,
        final_amount=entry_amount + net_pnl,
    )


def calculate_results(
    instrument: Optional[Instrument],
    current_price,
    entry_amount,
    leverage,
    position_type: str,
    targets: Sequence,
) -> List[TargetResult]:
    """
    Results for every valid target. Nothing is produced until the instrument,
    current price, entry amount and target 1 are all present and valid.
    """
    if instrument is None:
        return []

    price = parse_positive(current_price)
    entry = parse_positive(entry_amount)
    lev = parse_positive(leverage)
    if price is None or entry is None or lev is None:
        return []

    targets = list(targets)[:MAX_TARGETS]
    if not targets or parse_positive(targets[0]) is None:
        return []

    results = []
    for index, raw_target in enumerate(targets, start=1):
        target_price = parse_positive(raw_target)
        if target_price is None:
            continue
        results.append(
            calculate_target(entry, lev, position_type, price, target_price, target_index=index)
        )
    return results
