"""Shared builders for the price history tests."""

from datetime import datetime, timedelta, timezone

T0 = datetime(2024, 5, 1, 0, 0, tzinfo=timezone.utc)


def hours(count):
    """Return the instant `count` hours after T0."""
    return T0 + timedelta(hours=count)


def ha_state(hour, state, entity_id="sensor.electricity_price"):
    """Build one Home Assistant history entry."""
    stamp = hours(hour).isoformat()
    return {
        "entity_id": entity_id,
        "state": state,
        "attributes": {"unit_of_measurement": "EUR/kWh"},
        "last_changed": stamp,
        "last_updated": stamp,
    }


class DummyResponse:
    """Minimal requests.Response stub for tests."""

    def __init__(self, payload, error=None):
        self._payload = payload
        self._error = error

    def raise_for_status(self):
        """Raise the configured HTTP error, if any."""
        if self._error is not None:
            raise self._error
        return None

    def json(self):
        """Return the payload, raising ValueError for invalid JSON."""
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload
