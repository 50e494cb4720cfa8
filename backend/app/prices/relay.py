"""Composition root for the feed -> aggregation -> broadcast pipeline."""

from __future__ import annotations

import logging

from ..config import Settings
from .aggregation import AggregationEngine
from .broadcast import BroadcastHub
from .factory import create_feed_source
from .interface import FeedSource
from .models import PriceTick

logger = logging.getLogger(__name__)


class FeedRelayService:
    """Owns the engine, the hub and the feed source, and their lifecycle.

    Every tick from the source is broadcast as a ``priceUpdate`` first, then
    folded into the engine, whose hourly recomputation is broadcast as an
    ``hourlyAverageUpdate``. Both happen before the next tick is handled.
    """

    def __init__(
        self,
        settings: Settings,
        engine: AggregationEngine | None = None,
        source: FeedSource | None = None,
    ) -> None:
        self.engine = engine if engine is not None else AggregationEngine()
        self.hub = BroadcastHub(self.engine)
        self.engine.set_listener(self.hub)
        # Building the source validates configuration (e.g. the API key)
        self.source = source if source is not None else create_feed_source(settings, self.handle_tick)
        self._running = False

    def handle_tick(self, tick: PriceTick) -> None:
        self.hub.on_price_tick(tick)
        self.engine.handle_price_received(tick)

    async def start(self) -> None:
        if self._running:
            return
        await self.source.start()
        self._running = True
        logger.info("Feed relay started")

    async def stop(self) -> None:
        await self.source.stop()
        self.hub.close()
        self._running = False
        logger.info("Feed relay stopped")

    @property
    def running(self) -> bool:
        return self._running
