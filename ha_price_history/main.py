"""
Command line entry point: fetches the historical price intervals for a time range and prints
them as JSON.

    ha-price-history /path/to/config_dir --start 2024-05-01T00:00:00 --end 2024-05-02T00:00:00
"""

import argparse
from datetime import datetime
import json
import logging
import os
import sys
from typing import List, Optional

from .config import ConfigManager
from .exceptions import PriceDataError
from .interfaces.price_interface import create_price_provider
from .log_handler import MemoryLogHandler, TimezoneFormatter
from .version import __version__

logger = logging.getLogger("__main__")


def _parse_datetime(value):
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ha-price-history",
        description="Print historical electricity price intervals for a time range",
    )
    parser.add_argument(
        "config_dir",
        nargs="?",
        default=os.getcwd(),
        help="Directory containing config.yaml (default: current directory)",
    )
    parser.add_argument(
        "--start", required=True, type=_parse_datetime, help="Range start (ISO-8601)"
    )
    parser.add_argument(
        "--end", required=True, type=_parse_datetime, help="Range end, exclusive (ISO-8601)"
    )
    parser.add_argument(
        "--events",
        action="store_true",
        help="Also print the gap events recorded during reconstruction",
    )
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def setup_logging(time_zone, level):
    """
    Attach stream and memory handlers to the application logger.

    The stream handler honours the configured level. The memory handler always records
    INFO and above so every gap event is available, whatever the console level.
    """
    level = logging.getLevelName(level) if isinstance(level, str) else level
    formatter = TimezoneFormatter(
        "%(asctime)s %(levelname)s %(message)s", "%Y-%m-%d %H:%M:%S", tz=time_zone
    )
    streamhandler = logging.StreamHandler(sys.stderr)
    streamhandler.setFormatter(formatter)
    streamhandler.setLevel(level)
    memory_handler = MemoryLogHandler(max_records=5000, max_alerts=500)
    memory_handler.setFormatter(formatter)
    memory_handler.setLevel(min(level, logging.INFO))
    logger.addHandler(streamhandler)
    logger.addHandler(memory_handler)
    logger.setLevel(min(level, logging.INFO))
    return streamhandler, memory_handler


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config_manager = ConfigManager(args.config_dir)
    time_zone = config_manager.get_time_zone()
    streamhandler, memory_handler = setup_logging(
        time_zone, config_manager.get_log_level()
    )
    logger.info("[Main] Starting ha-price-history - version: %s", __version__)

    try:
        provider = create_price_provider(config_manager.config["price"], time_zone)
        intervals = provider.get_price_data(args.start, args.end)
    except PriceDataError as exc:
        logger.error("[Main] %s: %s", type(exc).__name__, exc)
        return 1
    finally:
        logger.removeHandler(streamhandler)
        logger.removeHandler(memory_handler)

    output = [
        {
            "value": str(interval.value),
            "valid_from": interval.valid_from.isoformat(),
            "valid_to": interval.valid_to.isoformat(),
        }
        for interval in intervals
    ]
    print(json.dumps(output, indent=2))
    if args.events:
        print(json.dumps(memory_handler.get_events(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
