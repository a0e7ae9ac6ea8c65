import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from levercalc.config import (
    CATEGORIES, LINEAR, QUOTE_SUFFIXES,
    SEARCH_MIN_CHARS, SEARCH_DEBOUNCE_SECONDS, SEARCH_RESULTS_LIMIT,
)
from levercalc.logger import log
from levercalc.models import Instrument
from levercalc.tasks import Debouncer

IDLE = 'idle'
RESULTS = 'results'
NO_MATCHES = 'no_matches'
ERROR = 'error'

UNAVAILABLE_MESSAGE = "Unable to connect to Bybit API. Please check your internet connection and try again."


@dataclass
class SearchOutcome:
    status: str = IDLE
    query: str = ''
    pairs: List[Instrument] = field(default_factory=list)
    message: str = ''


def no_matches_message(query: str) -> str:
    return f'No trading pairs found for "{query}". Try searching for popular coins like BTC, ETH, or SOL.'


def filter_pairs(query: str, instruments_by_category: Dict[str, List[Instrument]],
                 limit: int = SEARCH_RESULTS_LIMIT) -> List[Instrument]:
    """
    Substring match on the exchange symbol, USDT/USD quoted only.
    One entry per base symbol: linear (USDT margined) wins over inverse.
    """
    needle = query.strip().lower()
    matched = []
    for category, instruments in instruments_by_category.items():
        for instrument in instruments:
            symbol = instrument.base_symbol
            if needle in symbol.lower() and symbol.endswith(QUOTE_SUFFIXES):
                matched.append(instrument)

    # linear first, then whatever inverse is left
    matched.sort(key=lambda i: 0 if i.category == LINEAR else 1)

    unique = []
    seen = set()
    for instrument in matched:
        if instrument.base_symbol in seen:
            continue
        seen.add(instrument.base_symbol)
        unique.append(instrument)
    return unique[:limit]


async def search_pairs(client, query: str) -> SearchOutcome:
    query = (query or '').strip()
    if len(query) < SEARCH_MIN_CHARS:
        return SearchOutcome(status=IDLE, query=query)

    log.info(f"🔎 Searching pairs: {query!r}")
    responses = await asyncio.gather(
        *(client.list_instruments(category) for category in CATEGORIES),
        return_exceptions=True,
    )

    # combine only the categories that actually answered
    available = {}
    for category, response in zip(CATEGORIES, responses):
        if isinstance(response, BaseException):
            log.warning(f"⚠️ Search [{category}] failed: {response!r}")
            continue
        if response is None:
            continue
        available[category] = response

    if not available:
        return SearchOutcome(status=ERROR, query=query, message=UNAVAILABLE_MESSAGE)

    pairs = filter_pairs(query, available)
    if not pairs:
        return SearchOutcome(status=NO_MATCHES, query=query, message=no_matches_message(query))
    return SearchOutcome(status=RESULTS, query=query, pairs=pairs)


class PairSearch:
    """
    Debounced search box backend. Only the most recent query may publish
    its outcome; slower responses for older queries are dropped.
    """

    def __init__(self, client, delay: float = SEARCH_DEBOUNCE_SECONDS):
        self.client = client
        self.outcome = SearchOutcome()
        self.loading = False
        self.revision = 0
        self._generation = 0
        self._debouncer = Debouncer(delay, self._run)

    def _publish(self, outcome: SearchOutcome):
        self.outcome = outcome
        self.loading = False
        self.revision += 1

    def submit(self, query: Optional[str]):
        query = (query or '').strip()
        self._generation += 1

        if len(query) < SEARCH_MIN_CHARS:
            self._debouncer.cancel()
            self._publish(SearchOutcome(status=IDLE, query=query))
            return

        self.loading = True
        self.revision += 1
        self._debouncer.trigger(query, self._generation)

    def clear(self):
        self.submit('')

    async def _run(self, query: str, generation: int):
        outcome = await search_pairs(self.client, query)
        if generation != self._generation:
            log.debug(f"Dropping stale search result for {query!r}")
            return
        self._publish(outcome)
