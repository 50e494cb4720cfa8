"""Finnhub WebSocket client for live crypto trades."""

from __future__ import annotations

import asyncio
import json
import logging
import math
import time
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed

from .interface import FeedConfigurationError, FeedSource, TickCallback
from .models import PriceTick
from .symbols import TRACKED_SYMBOLS

logger = logging.getLogger(__name__)

FINNHUB_WS_URL = "wss://ws.finnhub.io"

NORMAL_CLOSURE = 1000
PROTOCOL_ERROR = 1002
ABNORMAL_CLOSURE = 1006
POLICY_VIOLATION = 1008

TICK_MESSAGE_TYPES = frozenset({"trade", "quote", "update"})

# Trades carry a last price, quotes an ask, updates a bid
PRICE_FIELDS = ("p", "ap", "bp")


class FeedState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    CLOSING_FOR_RECONNECT = "closing_for_reconnect"


def extract_ticks(message: Any, now_ms: int | None = None) -> list[PriceTick]:
    """Normalize a decoded trade/quote/update message into PriceTicks.

    Items without a symbol or without a usable price are skipped. Anything
    that isn't a tick-bearing message yields an empty list.
    """
    if not isinstance(message, dict) or message.get("type") not in TICK_MESSAGE_TYPES:
        return []
    items = message.get("data")
    if not isinstance(items, list):
        return []

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    ticks: list[PriceTick] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        symbol = item.get("s")
        price = _first_price(item)
        if not symbol or not isinstance(symbol, str) or price is None:
            logger.debug("Skipping item - missing symbol or invalid price: %s", item)
            continue
        ticks.append(PriceTick(symbol=symbol, price=price, timestamp=_timestamp_ms(item.get("t"), now_ms)))
    return ticks


def _first_price(item: dict) -> float | None:
    for key in PRICE_FIELDS:
        value = item.get(key)
        if value is None:
            continue
        if isinstance(value, bool):
            return None
        try:
            price = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
        return price if math.isfinite(price) else None
    return None


def _timestamp_ms(value: Any, now_ms: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return now_ms
    try:
        if math.isfinite(value):
            return int(value)
    except OverflowError:
        pass
    return now_ms


class FinnhubFeedClient(FeedSource):
    """FeedSource backed by the Finnhub trades WebSocket.

    Holds at most one connection at a time. After any close other than a
    normal (1000) closure, and after any transport error, exactly one
    reconnect is scheduled ``reconnect_delay`` seconds later. A pending
    reconnect is always cancelled before another is scheduled.

    ``connector`` opens the transport: called with the endpoint URL, it must
    return an async context manager yielding a connection that supports
    ``send()``, async iteration over frames, and ``close_code``.
    """

    def __init__(
        self,
        api_key: str,
        on_tick: TickCallback,
        symbols: Iterable[str] = TRACKED_SYMBOLS,
        url: str = FINNHUB_WS_URL,
        reconnect_delay: float = 5.0,
        connector: Callable[[str], Any] = connect,
    ) -> None:
        if not api_key or not api_key.strip():
            logger.error("FINNHUB_API_KEY is required. Please set it in your environment.")
            raise FeedConfigurationError("FINNHUB_API_KEY environment variable is required")

        self._api_key = api_key.strip()
        self._on_tick = on_tick
        self._symbols: tuple[str, ...] = tuple(symbols)
        self._url = url
        self._reconnect_delay = reconnect_delay
        self._connector = connector

        self._state = FeedState.DISCONNECTED
        self._task: asyncio.Task | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._ws: Any = None
        self._stopped = True
        self.connection_attempts = 0
        logger.info("Finnhub API key configured")

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def endpoint(self) -> str:
        sep = "&" if "?" in self._url else "?"
        return f"{self._url}{sep}token={self._api_key}"

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    async def start(self) -> None:
        if not self._stopped:
            return
        self._stopped = False
        self._open_connection()

    async def stop(self) -> None:
        self._stopped = True
        self._cancel_reconnect()

        task, self._task = self._task, None
        if task and not task.done():
            # Cancelling unwinds the connection context, which closes the socket
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._ws = None
        self._state = FeedState.DISCONNECTED
        logger.info("Finnhub feed stopped")

    # --- Internal ---

    def _open_connection(self) -> None:
        self._state = FeedState.CONNECTING
        self.connection_attempts += 1
        self._task = asyncio.create_task(self._run_connection(), name="finnhub-feed")

    async def _run_connection(self) -> None:
        """Connect, subscribe, and pump frames until the transport closes."""
        close_code: int | None = None
        close_reason = ""
        logger.info("Connecting to Finnhub WebSocket at %s", self._url)
        try:
            async with self._connector(self.endpoint) as ws:
                self._ws = ws
                await self._subscribe_all(ws)
                self._state = FeedState.SUBSCRIBED
                logger.info("Connected to Finnhub; subscribed to %s", ", ".join(self._symbols))
                async for raw_message in ws:
                    await self._handle_message(ws, raw_message)
                close_code = ws.close_code
                close_reason = getattr(ws, "close_reason", None) or ""
        except ConnectionClosed as exc:
            if exc.rcvd is not None:
                close_code, close_reason = exc.rcvd.code, exc.rcvd.reason
            else:
                close_code = ABNORMAL_CLOSURE
        except Exception as exc:
            # Handshake rejections (e.g. HTTP 401 for a bad token) land here too
            logger.error("Finnhub WebSocket error: %s", exc)
        finally:
            self._ws = None

        if close_code is not None:
            self._handle_close(close_code, close_reason)
        elif not self._stopped:
            self._schedule_reconnect()

    async def _subscribe_all(self, ws: Any) -> None:
        for symbol in self._symbols:
            await ws.send(json.dumps({"type": "subscribe", "symbol": symbol}))
            logger.debug("Subscribed: %s", symbol)

    async def _handle_message(self, ws: Any, raw_message: str | bytes) -> None:
        try:
            message = json.loads(raw_message)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Skipping non-JSON message: %r", raw_message)
            return
        if not isinstance(message, dict):
            logger.debug("Ignoring non-object message: %r", message)
            return

        try:
            await self._dispatch(ws, message)
        except ConnectionClosed:
            raise
        except Exception as exc:
            # One bad frame or failing callback must not tear down the transport
            logger.error("Error handling Finnhub message: %s", exc)

    async def _dispatch(self, ws: Any, message: dict) -> None:
        message_type = message.get("type")
        if message_type == "ping":
            logger.debug("Received ping from Finnhub, sending pong")
            await ws.send(json.dumps({"type": "pong"}))
            return
        if message_type == "error":
            logger.error("Finnhub API error: %s", message.get("msg"))
            return
        if message_type not in TICK_MESSAGE_TYPES:
            return

        for tick in extract_ticks(message):
            if self._stopped:
                return
            self._on_tick(tick)

    def _handle_close(self, code: int, reason: str) -> None:
        logger.warning("Finnhub WebSocket closed. Code: %s, Reason: %s", code, reason or "Unknown")
        if self._stopped:
            return

        if code == NORMAL_CLOSURE:
            logger.info("Connection closed normally")
            self._state = FeedState.DISCONNECTED
            return

        if code == POLICY_VIOLATION:
            logger.error(
                "Connection closed due to policy violation. Check your API key and subscription limits."
            )
        elif code == ABNORMAL_CLOSURE:
            logger.error(
                "Connection closed unexpectedly (abnormal closure). "
                "This may indicate network issues or API key problems."
            )
        elif code == PROTOCOL_ERROR:
            logger.error("Connection closed due to protocol error.")

        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        self._state = FeedState.CLOSING_FOR_RECONNECT
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._reconnect_delay, self._reconnect)
        logger.info("Scheduling reconnection in %.1f seconds...", self._reconnect_delay)

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if self._stopped:
            return
        logger.info("Attempting to reconnect to Finnhub WebSocket...")
        self._open_connection()
