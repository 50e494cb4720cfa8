"""Tests for FeedRelayService wiring and lifecycle."""

import time
from unittest.mock import AsyncMock

import pytest
from fakes import ETHUSDC, ETHUSDT, make_tick

from app.config import Settings
from app.prices.broadcast import Subscriber
from app.prices.interface import FeedConfigurationError, FeedSource
from app.prices.relay import FeedRelayService
from app.prices.simulator import SimulatedFeed


def fake_source() -> AsyncMock:
    return AsyncMock(spec=FeedSource)


class TestWiring:
    """End-to-end flow through engine and hub without a network."""

    def test_missing_key_fails_construction(self):
        with pytest.raises(FeedConfigurationError):
            FeedRelayService(Settings())

    def test_builds_configured_source(self, simulator_settings):
        relay = FeedRelayService(simulator_settings)
        assert isinstance(relay.source, SimulatedFeed)

    def test_tick_reaches_engine_and_subscribers(self, simulator_settings):
        relay = FeedRelayService(simulator_settings, source=fake_source())
        sub = Subscriber()
        relay.hub.connect(sub)
        sub.drain()

        tick = make_tick(ETHUSDC, 2500.0, int(time.time() * 1000))
        relay.handle_tick(tick)

        messages = sub.drain()
        assert [m["event"] for m in messages] == ["priceUpdate", "hourlyAverageUpdate"]
        assert messages[0]["data"] == tick.to_dict()
        assert messages[1]["data"]["count"] == 1
        assert relay.engine.get_latest_price(ETHUSDC) == tick

    def test_stale_tick_broadcast_without_average(self, simulator_settings):
        relay = FeedRelayService(simulator_settings, source=fake_source())
        sub = Subscriber()
        relay.hub.connect(sub)
        sub.drain()

        relay.handle_tick(make_tick(ETHUSDC, 2500.0, int(time.time() * 1000) - 3 * 3600 * 1000))
        assert [m["event"] for m in sub.drain()] == ["priceUpdate"]

    def test_per_symbol_order_preserved(self, simulator_settings):
        relay = FeedRelayService(simulator_settings, source=fake_source())
        now = int(time.time() * 1000)
        ticks = [make_tick(ETHUSDT, 2500.0 + i, now + i) for i in range(5)]
        for tick in ticks:
            relay.handle_tick(tick)
        assert relay.engine.get_price_history(ETHUSDT) == ticks


@pytest.mark.asyncio
class TestLifecycle:
    """start/stop delegate to the source."""

    async def test_start_and_stop(self, simulator_settings):
        source = fake_source()
        relay = FeedRelayService(simulator_settings, source=source)

        await relay.start()
        assert relay.running
        source.start.assert_awaited_once()

        relay.hub.connect(Subscriber())
        await relay.stop()
        source.stop.assert_awaited_once()
        assert not relay.running
        assert len(relay.hub) == 0

    async def test_start_twice_starts_source_once(self, simulator_settings):
        source = fake_source()
        relay = FeedRelayService(simulator_settings, source=source)
        await relay.start()
        await relay.start()
        source.start.assert_awaited_once()
        await relay.stop()

    async def test_simulated_feed_populates_engine(self, simulator_settings):
        relay = FeedRelayService(simulator_settings)
        await relay.start()
        try:
            assert len(relay.engine.get_all_latest_prices()) == 3
            assert len(relay.engine.get_all_hourly_averages()) == 3
        finally:
            await relay.stop()
