"""Factory for creating price feed sources."""

from __future__ import annotations

import logging

from ..config import FEED_SOURCES, Settings
from .interface import FeedConfigurationError, FeedSource, TickCallback

logger = logging.getLogger(__name__)


def create_feed_source(settings: Settings, on_tick: TickCallback) -> FeedSource:
    """Create the feed source selected by ``settings.feed_source``.

    - ``finnhub`` (default) → FinnhubFeedClient; raises FeedConfigurationError
      when FINNHUB_API_KEY is missing
    - ``simulator`` → SimulatedFeed (GBM simulation, no network)

    Returns an unstarted source. Caller must await source.start().
    """
    if settings.feed_source == "finnhub":
        from .finnhub_client import FinnhubFeedClient

        logger.info("Price feed source: Finnhub WebSocket (real data)")
        return FinnhubFeedClient(
            api_key=settings.finnhub_api_key,
            on_tick=on_tick,
            url=settings.finnhub_ws_url,
            reconnect_delay=settings.reconnect_delay,
        )

    if settings.feed_source == "simulator":
        from .simulator import SimulatedFeed

        logger.info("Price feed source: GBM Simulator")
        return SimulatedFeed(on_tick=on_tick)

    raise FeedConfigurationError(
        f"Unknown FEED_SOURCE {settings.feed_source!r}; expected one of {', '.join(FEED_SOURCES)}"
    )
