"""
Live price monitor tests: idle/active lifecycle, polling,
silent poll failures and the keyed direction flash.

Run with: pytest tests/test_live_price.py -v
"""

import asyncio

from conftest import ScriptedPrices, run
from levercalc.live_price import (
    LivePriceMonitor, IDLE, ACTIVE, UP, DOWN, UNCHANGED, PRICE_FAILED_MESSAGE,
)


class SlowPrices:
    """get_price() blocks until released"""

    def __init__(self, price):
        self.price = price
        self.release = asyncio.Event()

    async def get_price(self, symbol, category="linear"):
        await self.release.wait()
        return self.price


class TestLifecycle:

    def test_starts_idle(self):
        monitor = LivePriceMonitor(ScriptedPrices([1.0]))

        assert monitor.state == IDLE
        assert monitor.price is None

    def test_start_fetches_immediately(self, btc_linear):
        client = ScriptedPrices([50000.0])

        async def scenario():
            monitor = LivePriceMonitor(client, interval=10)
            error = await monitor.start(btc_linear)
            snapshot = (error, monitor.state, monitor.price, monitor.last_update is not None)
            monitor.stop()
            return monitor, snapshot

        monitor, (error, state, price, has_update) = run(scenario())

        assert error is None
        assert state == ACTIVE
        assert price == 50000.0
        assert has_update
        assert client.calls == [("BTCUSDT", "linear")]
        assert monitor.state == IDLE

    def test_uses_instrument_category(self, eth_inverse):
        client = ScriptedPrices([3000.0])

        async def scenario():
            monitor = LivePriceMonitor(client, interval=10)
            await monitor.start(eth_inverse)
            monitor.stop()

        run(scenario())

        assert client.calls == [("ETHUSD", "inverse")]

    def test_initial_failure_is_surfaced(self, btc_linear):
        async def scenario():
            monitor = LivePriceMonitor(ScriptedPrices([None]), interval=10)
            error = await monitor.start(btc_linear)
            return monitor, error

        monitor, error = run(scenario())

        assert error == PRICE_FAILED_MESSAGE
        assert monitor.state == IDLE
        assert not monitor._task.running

    def test_restore_start_is_silent(self, btc_linear):
        async def scenario():
            monitor = LivePriceMonitor(ScriptedPrices([None]), interval=10)
            error = await monitor.start(btc_linear, surface_errors=False)
            state = monitor.state
            monitor.stop()
            return error, state

        error, state = run(scenario())

        assert error is None
        assert state == ACTIVE

    def test_clear_forgets_instrument(self, btc_linear):
        async def scenario():
            monitor = LivePriceMonitor(ScriptedPrices([100.0]), interval=10)
            await monitor.start(btc_linear)
            monitor.clear()
            return monitor

        monitor = run(scenario())

        assert monitor.instrument is None
        assert monitor.price is None
        assert monitor.state == IDLE


class TestPolling:

    def test_polls_on_interval(self, btc_linear):
        client = ScriptedPrices([100.0, 101.0, 102.0])

        async def scenario():
            monitor = LivePriceMonitor(client, interval=0.02, flash_seconds=5)
            await monitor.start(btc_linear)
            await asyncio.sleep(0.1)
            monitor.stop()
            return monitor

        monitor = run(scenario())

        assert len(client.calls) >= 3
        assert monitor.price == 102.0
        assert monitor.previous_price in (101.0, 102.0)

    def test_poll_failure_keeps_last_price(self, btc_linear):
        client = ScriptedPrices([100.0, RuntimeError("socket closed"), None])

        async def scenario():
            monitor = LivePriceMonitor(client, interval=10)
            await monitor.start(btc_linear)
            await monitor.poll()
            await monitor.poll()
            monitor.stop()
            return monitor

        monitor = run(scenario())

        assert monitor.price == 100.0
        assert monitor.direction is None

    def test_response_after_stop_is_discarded(self, btc_linear):
        async def scenario():
            monitor = LivePriceMonitor(ScriptedPrices([100.0]), interval=10)
            await monitor.start(btc_linear)
            monitor.stop()

            slow = SlowPrices(999.0)
            monitor.client = slow
            poll = asyncio.create_task(monitor.poll())
            await asyncio.sleep(0)
            monitor.clear()
            slow.release.set()
            await poll
            return monitor

        monitor = run(scenario())

        assert monitor.price is None


class TestDirectionFlash:

    def test_up_down_unchanged(self, btc_linear):
        async def scenario():
            monitor = LivePriceMonitor(ScriptedPrices([100.0, 105.0, 101.0, 101.0]), interval=10, flash_seconds=5)
            await monitor.start(btc_linear)
            seen = [monitor.direction]
            for _ in range(3):
                await monitor.poll()
                seen.append(monitor.direction)
            monitor.stop()
            return seen

        assert run(scenario()) == [None, UP, DOWN, UNCHANGED]

    def test_flash_clears_after_timeout(self, btc_linear):
        async def scenario():
            monitor = LivePriceMonitor(ScriptedPrices([100.0, 105.0]), interval=10, flash_seconds=0.05)
            await monitor.start(btc_linear)
            await monitor.poll()
            before = monitor.direction
            await asyncio.sleep(0.1)
            after = monitor.direction
            monitor.stop()
            return before, after

        assert run(scenario()) == (UP, None)

    def test_old_clear_does_not_erase_newer_flash(self, btc_linear):
        async def scenario():
            monitor = LivePriceMonitor(ScriptedPrices([100.0, 105.0, 90.0]), interval=10, flash_seconds=0.1)
            await monitor.start(btc_linear)
            await monitor.poll()
            old_generation = monitor._flash_generation
            await asyncio.sleep(0.06)
            await monitor.poll()

            # the clear scheduled for the first flash fires late
            monitor._clear_flash(old_generation)
            mid = monitor.direction
            await asyncio.sleep(0.06)
            still = monitor.direction
            await asyncio.sleep(0.1)
            final = monitor.direction
            monitor.stop()
            return mid, still, final

        assert run(scenario()) == (DOWN, DOWN, None)
