"""WebSocket endpoint for live price updates."""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from .broadcast import GET_LATEST_PRICES, BroadcastHub, Subscriber

logger = logging.getLogger(__name__)


def create_stream_router(hub: BroadcastHub) -> APIRouter:
    """Create the WebSocket streaming router bound to a broadcast hub.

    This factory pattern lets us inject the hub without globals.
    """
    router = APIRouter(tags=["streaming"])

    @router.websocket("/ws/prices")
    async def stream_prices(websocket: WebSocket) -> None:
        """Stream price events to one browser session.

        On connect the client receives ``latestPrices``, ``hourlyAverages``
        and ``priceHistory``, then a ``priceUpdate`` per tick and an
        ``hourlyAverageUpdate`` per recomputation. Frames are JSON objects:

            {"event": "priceUpdate", "data": {"symbol": "...", "price": 2500.1, "timestamp": ...}}

        Sending ``{"event": "getLatestPrices"}`` re-sends the snapshot.
        """
        await websocket.accept()
        client = websocket.client
        subscriber = Subscriber(name=f"{client.host}:{client.port}" if client else None)
        hub.connect(subscriber)

        sender = asyncio.create_task(_pump(websocket, subscriber), name=f"ws-send-{subscriber.id}")
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                _handle_client_message(hub, subscriber, raw)
        except WebSocketDisconnect:
            pass
        finally:
            hub.disconnect(subscriber)
            sender.cancel()
            # Sender may already have failed on the closed socket
            await asyncio.gather(sender, return_exceptions=True)

    return router


def _handle_client_message(hub: BroadcastHub, subscriber: Subscriber, raw: str | bytes) -> None:
    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("Ignoring non-JSON frame from %s", subscriber.name)
        return

    if isinstance(message, dict) and message.get("event") == GET_LATEST_PRICES:
        hub.refresh(subscriber)
    else:
        logger.debug("Ignoring unknown frame from %s: %r", subscriber.name, message)


async def _pump(websocket: WebSocket, subscriber: Subscriber) -> None:
    """Drain the subscriber's queue into the socket until cancelled."""
    while True:
        message = await subscriber.next_message()
        await websocket.send_json(message)
