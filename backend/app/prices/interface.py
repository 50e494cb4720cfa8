"""Abstract interfaces for feed sources and price event listeners."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from .models import HourlyAverage, PriceTick

TickCallback = Callable[[PriceTick], None]


class FeedConfigurationError(ValueError):
    """Raised when a feed source cannot be built from the given configuration."""


class FeedSource(ABC):
    """Contract for price feed providers.

    Implementations hand every normalized PriceTick to the tick callback they
    were constructed with, in arrival order. Downstream code never polls the
    source; it reads aggregated state from the AggregationEngine.

    Lifecycle:
        source = create_feed_source(settings, on_tick)
        await source.start()
        # ... app runs ...
        await source.stop()
    """

    @abstractmethod
    async def start(self) -> None:
        """Begin producing ticks for the tracked symbols.

        Returns once the background task is scheduled; does not wait for the
        first tick.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop the background task and release resources.

        Safe to call multiple times. After stop() returns, the tick callback
        is never invoked again.
        """


class PriceEventListener(ABC):
    """Receiver of the events produced by the ingestion pipeline."""

    @abstractmethod
    def on_price_tick(self, tick: PriceTick) -> None:
        """Called once per accepted tick, in arrival order."""

    @abstractmethod
    def on_hourly_average(self, average: HourlyAverage) -> None:
        """Called whenever an hourly average is recomputed."""
