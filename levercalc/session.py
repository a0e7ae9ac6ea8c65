from typing import Optional

from levercalc.live_price import LivePriceMonitor
from levercalc.logger import log
from levercalc.market_data import BybitMarketClient
from levercalc.models import Instrument
from levercalc.search import PairSearch
from levercalc.state import CalculatorState
from levercalc.trending import TrendingBoard


class PageSession:
    """
    Everything one browser tab owns: the calculator state, the search and
    the two background loops (trending while nothing is selected, live price
    while something is).
    """

    def __init__(self, client: Optional[BybitMarketClient] = None):
        self.client = client or BybitMarketClient()
        self.state = CalculatorState()
        self.search = PairSearch(self.client)
        self.trending = TrendingBoard(self.client)
        self.monitor = LivePriceMonitor(self.client)
        self.closed = False

    def bind(self, page_client):
        """Tie teardown to the NiceGUI client's lifetime."""
        # a dropped socket may reconnect within reconnect_timeout; only deletion ends the tab
        page_client.on_delete(self.close)

    def open(self):
        if self.state.instrument is None:
            self.trending.start()

    def select(self, instrument: Instrument):
        """Switch pairs. Position, entry and targets carry over; leverage restarts at the pair's minimum."""
        log.info(f"Selected {instrument.symbol}")
        self.trending.stop()
        self.state.select(instrument)

    def restore(self, restored: CalculatorState):
        self.trending.stop()
        self.state.instrument = restored.instrument
        self.state.position_type = restored.position_type
        self.state.leverage = restored.leverage
        self.state.entry_amount = restored.entry_amount
        self.state.targets = restored.targets

    def reset(self):
        self.monitor.clear()
        self.search.clear()
        self.state.reset()
        self.trending.start()

    def close(self):
        self.closed = True
        self.monitor.clear()
        self.trending.stop()
        self.search.clear()
        log.debug("Page closed, timers stopped")
