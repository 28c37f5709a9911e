"""Shared fixtures for the price history tests."""

import pytest


@pytest.fixture
def ha_config():
    """Return a valid Home Assistant price configuration section."""
    return {
        "source": "homeassistant",
        "url": "http://homeassistant:8123/",
        "access_token": "abc123",
        "entity_id": "sensor.electricity_price",
        "timeout": 5,
        "lookback_days": 7,
    }
