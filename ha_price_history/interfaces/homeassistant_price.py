"""
This module provides the `HomeAssistantPriceInterface` class, which retrieves historical
electricity prices recorded by a Home Assistant sensor and reconstructs the priced intervals
for a requested time range.

Home Assistant keeps a rolling history window, so requests that start before the oldest
recorded state fail with a `DataCompletenessError` rather than returning partial data.

Usage:
    config = {
        "url": "http://homeassistant:8123",
        "access_token": "abc123",
        "entity_id": "sensor.electricity_price",
        "lookback_days": 7,
    }
    price_interface = HomeAssistantPriceInterface(config, timezone="Europe/Berlin")
    intervals = price_interface.get_price_data(start, end)
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
import logging
import pytz
import requests

from ..constants import (
    HA_HISTORY_PATH,
    HA_UNAVAILABLE_STATES,
    DEFAULT_REQUEST_TIMEOUT,
)
from ..exceptions import (
    ConfigurationError,
    DataCompletenessError,
    DeserializationError,
    PriceDataError,
    TransportError,
)
from .price_reconstruction import (
    Observation,
    Unavailable,
    Valid,
    reconstruct_intervals,
    validate_observations,
)

logger = logging.getLogger("__main__")
logger.info("[HA-PRICE] loading module ")


def to_utc_iso(value):
    """
    Formats an aware datetime as an ISO-8601 UTC instant with a 'Z' suffix.
    """
    return value.astimezone(pytz.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value):
    """
    Parses an ISO-8601 timestamp as returned by Home Assistant into an aware datetime.

    Raises:
        ValueError: If the value is not a string, not ISO-8601 or carries no offset.
    """
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO-8601 string, got {value!r}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp without offset: {value}")
    return parsed


def parse_state(value):
    """
    Maps a Home Assistant state string to Valid(Decimal) or Unavailable.

    Raises:
        ValueError: If the state is neither a sentinel nor a finite decimal.
    """
    if not isinstance(value, str):
        raise ValueError(f"expected a state string, got {value!r}")
    if value in HA_UNAVAILABLE_STATES:
        return Unavailable()
    try:
        number = Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"state is not a decimal: {value!r}") from exc
    if not number.is_finite():
        raise ValueError(f"state is not a finite decimal: {value!r}")
    return Valid(number)


class HomeAssistantPriceInterface:
    """
    Price source backed by the Home Assistant history API.

    Attributes:
        url (str): Base URL of the Home Assistant instance.
        entity_id (str): Entity recording the electricity price.
        access_token (str): Long-lived access token (optional).
        timeout (float): HTTP timeout in seconds.
        lookback_days (int): Recommended maximum age of requested ranges in days.
        time_zone: pytz time zone used to localize naive datetimes.

    Methods:
        get_price_data(start, end):
            Returns the list of PriceInterval values tiling [start, end).
    """

    source_name = "homeassistant"

    def __init__(self, config, timezone="UTC"):
        self.url = (config.get("url") or "").rstrip("/")
        self.entity_id = config.get("entity_id") or ""
        self.access_token = config.get("access_token") or ""
        self.timeout = config.get("timeout", DEFAULT_REQUEST_TIMEOUT)
        self.lookback_days = config.get("lookback_days")
        if isinstance(timezone, str):
            timezone = pytz.timezone(timezone)
        self.time_zone = timezone

        self.__check_config()
        logger.info(
            "[HA-PRICE] Initialized with url: %s, entity_id: %s",
            self.url,
            self.entity_id,
        )

    def __check_config(self):
        """
        Checks the configuration for required parameters.

        Raises:
            ConfigurationError: If the URL or entity id is missing.
        """
        if not self.url:
            raise ConfigurationError(
                "Home Assistant price source selected, but 'url' is not configured"
            )
        if not self.entity_id:
            raise ConfigurationError(
                "Home Assistant price source selected, but 'entity_id' is not configured"
            )
        if not self.access_token:
            logger.warning(
                "[HA-PRICE] No access_token configured - requests will be sent unauthenticated"
            )
        if not self.lookback_days:
            logger.warning(
                "[HA-PRICE] Configuring 'lookback_days' is recommended when using Home"
                + " Assistant as there is usually a rolling data range and older charges"
                + " may not be able to be calculated"
            )

    def _localize(self, value):
        if value.tzinfo is None:
            return self.time_zone.localize(value)
        return value

    def get_price_data(self, start, end):
        """
        Retrieves the priced intervals covering [start, end).

        Args:
            start (datetime): Range start; naive values are read in the configured time zone.
            end (datetime): Exclusive range end.

        Returns:
            list: PriceInterval values, contiguous from `start` to `end`.

        Raises:
            TransportError, DeserializationError, DataCompletenessError,
            ValueResolutionError: With source, entity and range attached as context.
        """
        start = self._localize(start)
        end = self._localize(end)
        try:
            history = self.__fetch_history(start, end)
            observations = self.__parse_observations(history)
            observations, beyond_end = self.__clip_to_range(observations, end)
            observations = validate_observations(observations, start)
            intervals = reconstruct_intervals(observations, end, beyond_end)
        except PriceDataError as exc:
            exc.add_context(
                source=self.source_name,
                entity_id=self.entity_id,
                start=to_utc_iso(start),
                end=to_utc_iso(end),
            )
            logger.error("[HA-PRICE] Failed to retrieve prices: %s", exc)
            raise
        logger.debug(
            "[HA-PRICE] Reconstructed %d price intervals from %s to %s",
            len(intervals),
            to_utc_iso(start),
            to_utc_iso(end),
        )
        return intervals

    def __fetch_history(self, start, end):
        """
        Fetches the raw state history of the price entity.

        Returns:
            list: The single list of state objects for the entity.
        """
        request_url = f"{self.url}{HA_HISTORY_PATH}/{to_utc_iso(start)}"
        params = {"filter_entity_id": self.entity_id, "end_time": to_utc_iso(end)}
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        logger.debug(
            "[HA-PRICE] Requesting history from %s with %s", request_url, params
        )
        try:
            response = requests.get(
                request_url, params=params, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as exc:
            raise TransportError(
                f"request timed out after {self.timeout} s: {request_url}"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise DeserializationError(f"response is not valid JSON: {exc}") from exc

        if not isinstance(data, list):
            raise DeserializationError(
                f"expected a JSON array, got {type(data).__name__}"
            )
        if not data:
            raise DataCompletenessError(
                "empty response", f"no history returned for {self.entity_id}"
            )
        if len(data) > 1:
            raise DeserializationError(
                f"expected exactly one history list, got {len(data)}"
            )
        history = data[0]
        if not isinstance(history, list):
            raise DeserializationError(
                f"expected a list of states, got {type(history).__name__}"
            )
        return history

    def __parse_observations(self, history):
        observations = []
        for index, entry in enumerate(history):
            try:
                last_changed = entry.get("last_changed")
                observations.append(
                    Observation(
                        timestamp=parse_timestamp(entry["last_updated"]),
                        state=parse_state(entry["state"]),
                        entity_id=entry.get("entity_id", ""),
                        last_changed=(
                            parse_timestamp(last_changed) if last_changed else None
                        ),
                    )
                )
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise DeserializationError(
                    f"malformed state at index {index}: {exc!r}"
                ) from exc
        return observations

    def __clip_to_range(self, observations, end):
        """
        Splits off observations at or after `end`.

        Returns:
            tuple: The observations inside the range, and the first one at or after `end`
            (None if there is none), kept as look-ahead for a trailing gap.
        """
        clipped = [obs for obs in observations if obs.timestamp < end]
        beyond_end = next((obs for obs in observations if obs.timestamp >= end), None)
        if len(clipped) < len(observations):
            logger.debug(
                "[HA-PRICE] Dropped %d observations at or after %s",
                len(observations) - len(clipped),
                to_utc_iso(end),
            )
        return clipped, beyond_end
