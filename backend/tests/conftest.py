"""Pytest configuration and shared fixtures."""

import pytest

from app.config import Settings


@pytest.fixture
def simulator_settings() -> Settings:
    """Settings that need no network or API key."""
    return Settings(feed_source="simulator")
