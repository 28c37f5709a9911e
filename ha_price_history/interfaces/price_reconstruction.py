"""
This module turns a raw observation stream from a time-series history into a gapless
sequence of priced intervals.

Observations come from upstream histories that may contain sentinel readings ("unknown",
"unavailable") where the recorder truncated or missed live data. Gaps are filled by carrying
the last known-good price forward, or, for a leading gap only, by borrowing the next
observation's price. Anything else fails the whole reconstruction with a
`ValueResolutionError`; no partial interval list is ever returned.

Usage:
    observations = validate_observations(observations, start)
    intervals = reconstruct_intervals(observations, end)
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging
from typing import List, Optional, Sequence, Union

from ..exceptions import DataCompletenessError, ValueResolutionError

logger = logging.getLogger("__main__")
logger.info("[RECONSTRUCT] loading module ")


@dataclass(frozen=True)
class Valid:
    """A numeric price reading."""

    value: Decimal


@dataclass(frozen=True)
class Unavailable:
    """A reading the upstream recorder did not capture."""


ObservationState = Union[Valid, Unavailable]


@dataclass(frozen=True)
class Observation:
    """One timestamped raw reading of price state."""

    timestamp: datetime
    state: ObservationState
    entity_id: str = ""
    last_changed: Optional[datetime] = None


@dataclass(frozen=True)
class PriceInterval:
    """A half-open span [valid_from, valid_to) with one constant price."""

    value: Decimal
    valid_from: datetime
    valid_to: datetime

    def __post_init__(self):
        if self.valid_from >= self.valid_to:
            raise ValueError(
                f"valid_from ({self.valid_from.isoformat()}) must be before"
                f" valid_to ({self.valid_to.isoformat()})"
            )


def validate_observations(
    observations: Sequence[Observation], start: datetime
) -> List[Observation]:
    """
    Checks that a fetched observation sequence can be reconstructed for a range starting at
    `start`.

    Args:
        observations: Observations in the order they were returned.
        start: The requested range start.

    Returns:
        list: The observations, unchanged.

    Raises:
        DataCompletenessError: If the sequence is empty, does not begin exactly at `start`,
            or its timestamps are not strictly increasing.
    """
    observations = list(observations)
    if not observations:
        raise DataCompletenessError("empty response", "no observations returned")
    first = observations[0].timestamp
    if first != start:
        raise DataCompletenessError(
            "range mismatch",
            f"first observation at {first.isoformat()} does not match"
            f" requested start {start.isoformat()}",
        )
    for index in range(1, len(observations)):
        if observations[index].timestamp <= observations[index - 1].timestamp:
            raise DataCompletenessError(
                "unordered response",
                f"observation {index} at {observations[index].timestamp.isoformat()}"
                " is not after its predecessor",
            )
    return observations


def _log_gap_event(level, event, index, timestamp, message, *args):
    logger.log(
        level,
        "[RECONSTRUCT] " + message,
        *args,
        extra={"event": event, "index": index, "timestamp": timestamp.isoformat()},
    )


def reconstruct_intervals(
    observations: Sequence[Observation],
    end: datetime,
    next_observation: Optional[Observation] = None,
) -> List[PriceInterval]:
    """
    Builds the interval sequence for validated observations.

    Each observation opens an interval that runs until the next observation's timestamp, the
    last one until `end`. Unavailable readings take the last known-good price; a leading gap
    with no prior price borrows the price of the immediately following observation, and
    never looks further ahead.

    Args:
        observations: Non-empty observations, first one at the requested start.
        end: The requested (exclusive) range end.
        next_observation: The first observation at or after `end`, if any. It opens no
            interval and is only consulted as the look-ahead for the last observation.

    Returns:
        list: PriceInterval values tiling [observations[0].timestamp, end).

    Raises:
        ValueResolutionError: If an interval price cannot be determined.
    """
    intervals = []
    last_known_good = None
    count = len(observations)
    for index, observation in enumerate(observations):
        valid_from = observation.timestamp
        valid_to = observations[index + 1].timestamp if index < count - 1 else end

        if isinstance(observation.state, Valid):
            value = observation.state.value
            last_known_good = value
        else:
            _log_gap_event(
                logging.WARNING,
                "gap_detected",
                index,
                valid_from,
                "Unavailable price at %s (observation %d)",
                valid_from.isoformat(),
                index,
            )
            if index < count - 1:
                next_state = observations[index + 1].state
            else:
                next_state = next_observation.state if next_observation else None
            if last_known_good is not None:
                value = last_known_good
                _log_gap_event(
                    logging.INFO,
                    "gap_resolved_by_carry_forward",
                    index,
                    valid_from,
                    "Carrying forward previous price %s",
                    value,
                )
            elif isinstance(next_state, Valid):
                value = next_state.value
                last_known_good = value
                _log_gap_event(
                    logging.INFO,
                    "gap_resolved_by_lookahead",
                    index,
                    valid_from,
                    "No previous price, using next price %s",
                    value,
                )
            else:
                _log_gap_event(
                    logging.ERROR,
                    "gap_unresolved",
                    index,
                    valid_from,
                    "No previous price and %s",
                    "no next observation"
                    if next_state is None
                    else "next observation is unavailable too",
                )
                raise ValueResolutionError(index, valid_from)

        intervals.append(PriceInterval(value, valid_from, valid_to))
    return intervals
