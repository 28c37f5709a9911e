"""
This module defines the contract every electricity price source implements, and selects the
configured source at startup.

A price source is any object with a `get_price_data(start, end)` method returning an ordered
list of `PriceInterval` values that exactly tiles [start, end), or raising a
`PriceDataError`. Sources are registered by name in `PRICE_PROVIDERS`.

Usage:
    provider = create_price_provider(config_manager.config["price"], time_zone)
    intervals = provider.get_price_data(start, end)
"""

from datetime import datetime
import logging
from typing import List, Protocol, runtime_checkable

from ..exceptions import ConfigurationError
from .homeassistant_price import HomeAssistantPriceInterface
from .price_reconstruction import PriceInterval

logger = logging.getLogger("__main__")
logger.info("[PRICE-IF] loading module ")


@runtime_checkable
class PriceDataProvider(Protocol):
    """Capability of fetching priced intervals for a half-open time range."""

    def get_price_data(self, start: datetime, end: datetime) -> List[PriceInterval]:
        """Returns the intervals covering [start, end) or raises PriceDataError."""


PRICE_PROVIDERS = {
    HomeAssistantPriceInterface.source_name: HomeAssistantPriceInterface,
}


def create_price_provider(config, time_zone="UTC") -> PriceDataProvider:
    """
    Creates the price source selected by `config["source"]`.

    Args:
        config (dict): The 'price' configuration section.
        time_zone: pytz time zone (or name) used for naive datetimes.

    Raises:
        ConfigurationError: If no source is configured or the source is unknown.
    """
    source = config.get("source") or ""
    if not source:
        raise ConfigurationError("no price source configured")
    provider_cls = PRICE_PROVIDERS.get(source)
    if provider_cls is None:
        raise ConfigurationError(
            f"price source '{source}' is not supported"
            f" (supported: {', '.join(sorted(PRICE_PROVIDERS))})"
        )
    logger.debug("[PRICE-IF] Using price source '%s'", source)
    return provider_cls(config, timezone=time_zone)
