"""Time window utilities for KPI scoring

Supports the three lookback windows offered to contributors: the last 30 days,
the last 90 days, and year to date. Each window resolves to a cutoff date;
records are in the window when their primary timestamp is on or after it.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

DEFAULT_TIME_WINDOW = "30days"

SECONDS_PER_WEEK = 7 * 24 * 60 * 60


class TimeWindowError(Exception):
    """Exception raised for unsupported time window specifications"""


class TimeWindow:
    """Represents a lookback window ending at a reference instant

    Attributes:
        start_date: Cutoff; records dated before it are out of the window
        end_date: Reference instant ("now") the window was computed from
        range_key: Window identifier ("30days", "90days", "ytd")
        description: Human-readable description
    """

    def __init__(self, start_date: datetime, end_date: datetime, range_key: str, description: str):
        self.start_date = start_date
        self.end_date = end_date
        self.range_key = range_key
        self.description = description

    @property
    def days(self) -> int:
        """Return the number of whole days in this window"""
        return (self.end_date - self.start_date).days

    @property
    def weeks(self) -> int:
        """Return the number of weeks in this window, rounded up (0 for an empty window)"""
        seconds = (self.end_date - self.start_date).total_seconds()
        if seconds <= 0:
            return 0
        return math.ceil(seconds / SECONDS_PER_WEEK)

    def contains(self, timestamp: Optional[datetime]) -> bool:
        """Check whether a resolved timestamp falls on or after the cutoff"""
        if timestamp is None:
            return False
        return timestamp >= self.start_date

    def __repr__(self) -> str:
        return f"TimeWindow({self.range_key}: {self.start_date.date()} to {self.end_date.date()})"


def parse_time_window(window_spec: str, reference_date: Optional[datetime] = None) -> TimeWindow:
    """Parse a time window specification into a TimeWindow object

    Supported values:
        - "30days": 30 days back from reference_date
        - "90days": 90 days back from reference_date
        - "ytd": January 1 of the reference year, 00:00 UTC

    Args:
        window_spec: Window identifier
        reference_date: Reference instant (defaults to now)

    Returns:
        TimeWindow object

    Raises:
        TimeWindowError: If window_spec is not one of the supported values

    Examples:
        >>> parse_time_window("ytd", datetime(2025, 6, 1, tzinfo=timezone.utc))
        TimeWindow(ytd: 2025-01-01 to 2025-06-01)
    """
    if reference_date is None:
        reference_date = datetime.now(timezone.utc)

    if reference_date.tzinfo is None:
        reference_date = reference_date.replace(tzinfo=timezone.utc)

    if not isinstance(window_spec, str):
        raise TimeWindowError(f"Time window must be a string, got {type(window_spec).__name__}")

    key = window_spec.strip().lower()

    if key == "30days":
        start_date = reference_date - timedelta(days=30)
        return TimeWindow(start_date, reference_date, key, "Last 30 days")

    if key == "90days":
        start_date = reference_date - timedelta(days=90)
        return TimeWindow(start_date, reference_date, key, "Last 90 days")

    if key == "ytd":
        start_date = datetime(reference_date.year, 1, 1, tzinfo=timezone.utc)
        return TimeWindow(start_date, reference_date, key, f"Year to date {reference_date.year}")

    raise TimeWindowError(f"Invalid time window: '{window_spec}'. Supported: 30days, 90days, ytd")


def get_time_window_options() -> List[Dict[str, str]]:
    """Return list of time window options with 'value' and 'label' keys"""
    return [
        {"value": "30days", "label": "Last 30 Days (Default)"},
        {"value": "90days", "label": "Last 90 Days"},
        {"value": "ytd", "label": "Year to Date"},
    ]


def filter_by_time_window(
    items: Iterable[Dict], window: TimeWindow, resolver: Callable[[Dict], Optional[datetime]]
) -> List[Dict]:
    """Keep the records whose resolved timestamp falls inside the window.

    Records without a parseable timestamp are dropped rather than raising.

    Args:
        items: Records to filter
        window: Time window to apply
        resolver: Function returning a record's primary timestamp (or None)

    Returns:
        List of records inside the window, in input order
    """
    return [item for item in items if window.contains(resolver(item))]
