"""
Typed errors raised while retrieving and reconstructing price data.

Every error aborts the whole request. Providers attach context (source, entity, requested
range) with `add_context` before re-raising, so the caller can tell a misconfiguration
apart from a genuine gap in the upstream data.
"""


class PriceDataError(Exception):
    """Base class for all price retrieval errors."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message
        self.context = {}

    def add_context(self, **context):
        """
        Attach diagnostic context to the error and return it for re-raising.

        Keys already present are kept, so the innermost context wins.
        """
        for key, value in context.items():
            self.context.setdefault(key, value)
        return self

    def __str__(self):
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(PriceDataError):
    """Raised when a required configuration value is missing or invalid."""


class TransportError(PriceDataError):
    """Raised when the HTTP request fails or returns a non-success status."""


class DeserializationError(PriceDataError):
    """Raised when the response body does not match the expected shape."""


class DataCompletenessError(PriceDataError):
    """
    Raised when the response is empty or does not start at the requested time.

    A range mismatch usually means the history retention window starts later than the
    requested range, or the entity id is wrong.
    """

    def __init__(self, reason, message=None):
        super().__init__(message or reason)
        self.reason = reason


class ValueResolutionError(PriceDataError):
    """Raised when an interval price can be determined neither by carry-forward nor look-ahead."""

    def __init__(self, index, timestamp):
        super().__init__(
            f"cannot resolve price for observation {index} at {timestamp.isoformat()}"
        )
        self.index = index
        self.timestamp = timestamp
