# utils.py
"""
Utility functions for the CRM client.
Provides logging configuration, the latency timer and date formatting.
"""

import logging
import sys
import time
from datetime import date, datetime, timezone


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure logging for console and file output.

    Args:
        level: Logging level (default: INFO).
    """
    root = logging.getLogger()

    if root.handlers:
        return

    root.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    file_handler = logging.FileHandler("crm.log")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


def start_timer() -> float:
    """Start a latency timer."""
    return time.perf_counter()


def stop_timer(timer: float) -> float:
    """
    Stop a latency timer.

    Args:
        timer: Value returned by start_timer().

    Returns:
        Elapsed time in milliseconds.
    """
    return (time.perf_counter() - timer) * 1000


def to_iso_utc(value: date) -> str:
    """
    Format a date or datetime as UTC ISO-8601 with milliseconds.

    Naive datetimes are taken as local time. Plain dates mean local midnight.

    Returns:
        String like "2020-04-01T16:00:00.000Z".
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
