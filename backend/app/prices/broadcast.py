"""Fan-out of price events to connected downstream subscribers."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any

from .aggregation import AggregationEngine
from .interface import PriceEventListener
from .models import HourlyAverage, PriceTick

logger = logging.getLogger(__name__)

# Server -> client event names
LATEST_PRICES = "latestPrices"
HOURLY_AVERAGES = "hourlyAverages"
PRICE_HISTORY = "priceHistory"
PRICE_UPDATE = "priceUpdate"
HOURLY_AVERAGE_UPDATE = "hourlyAverageUpdate"

# Client -> server
GET_LATEST_PRICES = "getLatestPrices"

_subscriber_ids = itertools.count(1)


class Subscriber:
    """One downstream consumer with its own outbound message queue.

    The hub enqueues without blocking; the transport drains the queue with
    ``await subscriber.next_message()``.
    """

    def __init__(self, name: str | None = None, max_pending: int = 1000) -> None:
        self.id = next(_subscriber_ids)
        self.name = name or f"subscriber-{self.id}"
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max_pending)

    def send(self, event: str, data: Any) -> bool:
        """Enqueue a message. Returns False if the subscriber is too far behind."""
        try:
            self._queue.put_nowait({"event": event, "data": data})
        except asyncio.QueueFull:
            logger.warning("Dropping %s for slow subscriber %s", event, self.name)
            return False
        return True

    async def next_message(self) -> dict[str, Any]:
        return await self._queue.get()

    def drain(self) -> list[dict[str, Any]]:
        """Pop every queued message without waiting."""
        messages = []
        while not self._queue.empty():
            messages.append(self._queue.get_nowait())
        return messages

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def __repr__(self) -> str:
        return f"Subscriber({self.name!r})"


class BroadcastHub(PriceEventListener):
    """Republishes ticks and hourly averages to every connected subscriber.

    New subscribers (and subscribers asking for a refresh) receive a full
    snapshot built from the AggregationEngine, addressed to them only.
    """

    def __init__(self, engine: AggregationEngine) -> None:
        self._engine = engine
        self._subscribers: dict[int, Subscriber] = {}

    def connect(self, subscriber: Subscriber) -> None:
        self._subscribers[subscriber.id] = subscriber
        logger.info("Client connected: %s (%d total)", subscriber.name, len(self._subscribers))
        self.send_snapshot(subscriber)

    def disconnect(self, subscriber: Subscriber) -> None:
        if self._subscribers.pop(subscriber.id, None) is not None:
            logger.info("Client disconnected: %s", subscriber.name)

    def refresh(self, subscriber: Subscriber) -> None:
        """Re-send the full snapshot in response to a client request."""
        self.send_snapshot(subscriber)

    def send_snapshot(self, subscriber: Subscriber) -> None:
        """Push latest prices, current hourly averages and history to one subscriber."""
        latest = self._engine.get_all_latest_prices()
        averages = self._engine.get_all_hourly_averages()

        latest_payload = {symbol: tick.to_dict() for symbol, tick in latest.items()}
        history_payload = {
            symbol: [tick.to_dict() for tick in self._engine.get_price_history(symbol)]
            for symbol in latest
        }
        averages_payload = {symbol: average.to_dict() for symbol, average in averages.items()}

        subscriber.send(LATEST_PRICES, latest_payload)
        subscriber.send(HOURLY_AVERAGES, averages_payload)
        subscriber.send(PRICE_HISTORY, history_payload)

    def on_price_tick(self, tick: PriceTick) -> None:
        self.broadcast(PRICE_UPDATE, tick.to_dict())

    def on_hourly_average(self, average: HourlyAverage) -> None:
        self.broadcast(HOURLY_AVERAGE_UPDATE, average.to_dict())

    def broadcast(self, event: str, data: Any) -> None:
        # Copy: a subscriber may disconnect while we iterate
        for subscriber in list(self._subscribers.values()):
            subscriber.send(event, data)

    def close(self) -> None:
        """Forget every subscriber. Pending messages are abandoned."""
        self._subscribers.clear()

    @property
    def subscribers(self) -> list[Subscriber]:
        return list(self._subscribers.values())

    def __len__(self) -> int:
        return len(self._subscribers)
