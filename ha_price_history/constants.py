"""
Constants for the price history application.
Includes Home Assistant API paths and state sentinels.
"""

# Home Assistant history REST endpoint, the start instant is appended as a path segment
HA_HISTORY_PATH = "/api/history/period"

# states Home Assistant records when a sensor value was not captured (case-sensitive)
HA_UNAVAILABLE_STATES = frozenset({"unknown", "unavailable"})

DEFAULT_REQUEST_TIMEOUT = 10  # seconds
