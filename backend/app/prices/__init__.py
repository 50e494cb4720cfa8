"""Price feed subsystem for the crypto rates backend.

Public API:
    PriceTick            - Immutable price observation dataclass
    HourlyAverage        - Immutable trailing-hour average dataclass
    AggregationEngine    - In-memory bounded history and hourly averages
    BroadcastHub         - Fan-out of price events to subscribers
    FeedSource           - Abstract interface for feed providers
    FeedRelayService     - Wires source -> engine -> hub and owns lifecycle
    create_feed_source   - Factory that selects Finnhub or the simulator
    create_stream_router - FastAPI router factory for the WebSocket endpoint
"""

from .aggregation import AggregationEngine
from .broadcast import BroadcastHub, Subscriber
from .factory import create_feed_source
from .interface import FeedConfigurationError, FeedSource, PriceEventListener
from .models import HourlyAverage, PriceTick
from .relay import FeedRelayService
from .stream import create_stream_router

__all__ = [
    "PriceTick",
    "HourlyAverage",
    "AggregationEngine",
    "BroadcastHub",
    "Subscriber",
    "FeedSource",
    "FeedConfigurationError",
    "PriceEventListener",
    "FeedRelayService",
    "create_feed_source",
    "create_stream_router",
]
