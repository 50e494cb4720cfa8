"""Data models for price ticks and hourly aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class PriceTick:
    """Immutable price observation for a single symbol at one instant."""

    symbol: str
    price: float
    timestamp: int  # Unix milliseconds

    def to_dict(self) -> dict:
        """Serialize for JSON / WebSocket transmission."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class HourlyAverage:
    """Mean price of a symbol over the trailing hour.

    ``hour`` is the bucket key: the start of the look-back window floored to
    the hour, as an ISO-8601 UTC string (``2025-01-01T10:00:00.000Z``).
    """

    symbol: str
    average: float
    hour: str
    count: int

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "average": self.average,
            "hour": self.hour,
            "count": self.count,
        }


def hour_bucket_key(timestamp_ms: int) -> str:
    """Floor a millisecond timestamp to the hour and format it as ISO-8601 UTC."""
    instant = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    floored = instant.replace(minute=0, second=0, microsecond=0)
    return floored.strftime("%Y-%m-%dT%H:%M:%S.000Z")
