"""Tests for PriceTick and HourlyAverage dataclasses."""

import pytest

from app.prices.models import HourlyAverage, PriceTick, hour_bucket_key


class TestPriceTick:
    """Unit tests for the PriceTick model."""

    def test_creation(self):
        tick = PriceTick(symbol="BINANCE:ETHUSDC", price=2500.5, timestamp=1735727400000)
        assert tick.symbol == "BINANCE:ETHUSDC"
        assert tick.price == 2500.5
        assert tick.timestamp == 1735727400000

    def test_to_dict_is_flat(self):
        """Serialized form carries exactly symbol, price and timestamp."""
        tick = PriceTick(symbol="BINANCE:ETHBTC", price=0.0375, timestamp=1735727400000)
        assert tick.to_dict() == {
            "symbol": "BINANCE:ETHBTC",
            "price": 0.0375,
            "timestamp": 1735727400000,
        }

    def test_small_prices_kept_exact(self):
        """No rounding: ETH/BTC quotes are tiny fractions."""
        tick = PriceTick(symbol="BINANCE:ETHBTC", price=0.03751234, timestamp=0)
        assert tick.price == 0.03751234

    def test_immutability(self):
        tick = PriceTick(symbol="BINANCE:ETHUSDC", price=2500.0, timestamp=0)
        with pytest.raises(AttributeError):
            tick.price = 2600.0

    def test_equality(self):
        a = PriceTick(symbol="BINANCE:ETHUSDC", price=2500.0, timestamp=1)
        b = PriceTick(symbol="BINANCE:ETHUSDC", price=2500.0, timestamp=1)
        assert a == b


class TestHourlyAverage:
    """Unit tests for the HourlyAverage model."""

    def test_to_dict(self):
        avg = HourlyAverage(symbol="BINANCE:ETHUSDT", average=2700.0, hour="2025-01-01T09:00:00.000Z", count=5)
        assert avg.to_dict() == {
            "symbol": "BINANCE:ETHUSDT",
            "average": 2700.0,
            "hour": "2025-01-01T09:00:00.000Z",
            "count": 5,
        }

    def test_immutability(self):
        avg = HourlyAverage(symbol="BINANCE:ETHUSDT", average=2700.0, hour="x", count=5)
        with pytest.raises(AttributeError):
            avg.count = 6


class TestHourBucketKey:
    """Tests for hour bucket key formatting."""

    def test_floors_to_hour(self):
        # 2025-01-01T09:30:15.250Z
        assert hour_bucket_key(1_735_723_815_250) == "2025-01-01T09:00:00.000Z"

    def test_exact_hour_unchanged(self):
        assert hour_bucket_key(1_735_725_600_000) == "2025-01-01T10:00:00.000Z"

    def test_uses_utc(self):
        assert hour_bucket_key(0) == "1970-01-01T00:00:00.000Z"
