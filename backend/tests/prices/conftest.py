"""Fixtures for price pipeline tests."""

from unittest.mock import MagicMock

import pytest
from fakes import FakeClock

from app.prices.aggregation import AggregationEngine


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def listener() -> MagicMock:
    return MagicMock()


@pytest.fixture
def engine(clock, listener) -> AggregationEngine:
    return AggregationEngine(listener=listener, clock=clock)
