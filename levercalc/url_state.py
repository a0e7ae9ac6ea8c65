"""
Shareable link support: the current selection lives in the page query
string (pair, position, leverage, entry, t1, t2, t3).
"""
import asyncio
from typing import Dict, Mapping, Optional
from urllib.parse import urlencode

from levercalc.config import CATEGORIES, POSITION_TYPES
from levercalc.logger import log
from levercalc.models import Instrument
from levercalc.state import CalculatorState

TARGET_KEYS = ('t1', 't2', 't3')


def encode_state(state: CalculatorState) -> Dict[str, str]:
    if state.instrument is None:
        return {}

    params = {
        'pair': state.instrument.base_symbol,
        'position': state.position_type,
        'leverage': f"{state.leverage:g}",
    }
    if state.entry_amount:
        params['entry'] = state.entry_amount
    for key, value in zip(TARGET_KEYS, state.targets):
        if value:
            params[key] = value
    return params


def build_query(state: CalculatorState) -> str:
    params = encode_state(state)
    return '?' + urlencode(params) if params else ''


async def resolve_instrument(client, symbol: str) -> Optional[Instrument]:
    """Find a tradable contract by exchange symbol; linear before inverse."""
    responses = await asyncio.gather(
        *(client.list_instruments(category) for category in CATEGORIES),
        return_exceptions=True,
    )
    for category, instruments in zip(CATEGORIES, responses):
        if isinstance(instruments, BaseException) or not instruments:
            continue
        for instrument in instruments:
            if instrument.base_symbol == symbol:
                return instrument
    return None


async def restore_state(client, params: Mapping[str, str]) -> Optional[CalculatorState]:
    """
    Rebuild the calculator from a shared link. Returns None (and leaves the
    page empty) when there is no pair or it cannot be resolved.
    """
    pair = (params.get('pair') or '').strip()
    if not pair:
        return None

    instrument = await resolve_instrument(client, pair)
    if instrument is None:
        log.warning(f"⚠️ Pair {pair} not found in any category")
        return None

    state = CalculatorState()
    state.select(instrument)

    position = params.get('position')
    if position in POSITION_TYPES:
        state.position_type = position

    if params.get('leverage'):
        state.set_leverage(params.get('leverage'))

    if params.get('entry'):
        state.entry_amount = params.get('entry')

    for index, key in enumerate(TARGET_KEYS):
        state.targets[index] = params.get(key) or ''

    log.info(f"🔗 Restored {instrument.symbol} from link")
    return state
