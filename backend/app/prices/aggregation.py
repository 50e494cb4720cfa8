"""In-memory rolling aggregation of price ticks per symbol."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict, deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from threading import Lock

from .interface import PriceEventListener
from .models import HourlyAverage, PriceTick, hour_bucket_key
from .symbols import HISTORY_CAPACITY, HOURLY_AVERAGE_CAPACITY, TRACKED_SYMBOLS

logger = logging.getLogger(__name__)

WINDOW_MS = 60 * 60 * 1000


@dataclass
class SymbolState:
    """Bounded history and hourly averages for one symbol."""

    history: deque[PriceTick] = field(default_factory=lambda: deque(maxlen=HISTORY_CAPACITY))
    hourly_averages: OrderedDict[str, HourlyAverage] = field(default_factory=OrderedDict)


class AggregationEngine:
    """Keeps latest price, recent history and the trailing-hour average per symbol.

    Writer: the feed relay (one tick at a time, in arrival order).
    Readers: BroadcastHub snapshots. All accessors return copies.

    The hourly average is recomputed on every tick over a sliding 60-minute
    window ending at the current clock time. Each recomputation is announced
    to the listener after the lock is released, so listeners may read back.
    """

    def __init__(
        self,
        listener: PriceEventListener | None = None,
        symbols: Iterable[str] = TRACKED_SYMBOLS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._listener = listener
        self._clock = clock  # Unix seconds
        self._symbols: tuple[str, ...] = tuple(symbols)
        self._states: dict[str, SymbolState] = {symbol: SymbolState() for symbol in self._symbols}
        self._lock = Lock()

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    def set_listener(self, listener: PriceEventListener | None) -> None:
        self._listener = listener

    def handle_price_received(self, tick: PriceTick) -> None:
        """Fold a tick into its symbol's history and refresh the hourly average."""
        with self._lock:
            # Unknown symbols are accepted; they just aren't reported by get_all_*
            state = self._states.setdefault(tick.symbol, SymbolState())
            state.history.append(tick)
            average = self._recompute_hourly_average(tick.symbol, state)

        if average is not None and self._listener is not None:
            self._listener.on_hourly_average(average)

    def get_latest_price(self, symbol: str) -> PriceTick | None:
        with self._lock:
            state = self._states.get(symbol)
            if state is None or not state.history:
                return None
            return state.history[-1]

    def get_all_latest_prices(self) -> dict[str, PriceTick]:
        """Latest tick for every tracked symbol, omitting symbols with no history."""
        latest: dict[str, PriceTick] = {}
        for symbol in self._symbols:
            tick = self.get_latest_price(symbol)
            if tick is not None:
                latest[symbol] = tick
        return latest

    def get_hourly_average(self, symbol: str) -> HourlyAverage | None:
        with self._lock:
            state = self._states.get(symbol)
            if state is None or not state.hourly_averages:
                return None
            return next(reversed(state.hourly_averages.values()))

    def get_all_hourly_averages(self) -> dict[str, HourlyAverage]:
        averages: dict[str, HourlyAverage] = {}
        for symbol in self._symbols:
            average = self.get_hourly_average(symbol)
            if average is not None:
                averages[symbol] = average
        return averages

    def get_hourly_averages(self, symbol: str) -> list[HourlyAverage]:
        """All retained hourly averages for a symbol, oldest bucket first."""
        with self._lock:
            state = self._states.get(symbol)
            return list(state.hourly_averages.values()) if state else []

    def get_price_history(self, symbol: str) -> list[PriceTick]:
        """Copy of the bounded history in arrival order. Empty if untracked."""
        with self._lock:
            state = self._states.get(symbol)
            return list(state.history) if state else []

    # --- Internal ---

    def _recompute_hourly_average(self, symbol: str, state: SymbolState) -> HourlyAverage | None:
        """Recompute the trailing-hour mean and upsert it by bucket key.

        Must be called with the lock held. Returns None when no tick falls
        inside the window.
        """
        now_ms = int(self._clock() * 1000)
        window_start = now_ms - WINDOW_MS

        total = 0.0
        count = 0
        for tick in state.history:
            if tick.timestamp >= window_start:
                total += tick.price
                count += 1

        if count == 0:
            return None

        average = HourlyAverage(
            symbol=symbol,
            average=total / count,
            hour=hour_bucket_key(window_start),
            count=count,
        )

        # Assigning an existing key keeps its position in the OrderedDict
        state.hourly_averages[average.hour] = average
        while len(state.hourly_averages) > HOURLY_AVERAGE_CAPACITY:
            state.hourly_averages.popitem(last=False)

        logger.debug("Hourly average for %s: %.8f over %d ticks", symbol, average.average, count)
        return average

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._states
