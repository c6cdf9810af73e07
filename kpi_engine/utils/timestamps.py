"""Timestamp resolution for activity records.

Every record kind stores its "primary" timestamp under a different field
(tasks and comments use ``created_at``, time logs fall back to ``logged_at``,
documents to ``uploaded_at``). This module is the single place that knows
those preference orders and how to turn raw values into timezone-aware
datetimes.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Optional

import pandas as pd

TASK_TIMESTAMP_FIELDS = ("created_at",)
TIME_LOG_TIMESTAMP_FIELDS = ("created_at", "logged_at")
COMMENT_TIMESTAMP_FIELDS = ("created_at",)
DOCUMENT_TIMESTAMP_FIELDS = ("created_at", "uploaded_at")

# Relative words such as "now" or "today" carry no digits
DIGIT_PATTERN = re.compile(r"\d")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a raw timestamp value into a UTC-aware datetime.

    Args:
        value: ISO 8601 string, datetime, date or pandas Timestamp

    Returns:
        Timezone-aware datetime, or None if the value is missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        # pd.NaT is a datetime subclass
        if pd.isna(value):
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if not isinstance(value, str) or not DIGIT_PATTERN.search(value):
        return None

    parsed = pd.to_datetime(value.strip(), utc=True, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def resolve_timestamp(record: Dict, fields: Iterable[str]) -> Optional[datetime]:
    """Return the first candidate field of a record that parses as a timestamp."""
    for field in fields:
        parsed = parse_timestamp(record.get(field))
        if parsed is not None:
            return parsed
    return None


def task_timestamp(task: Dict) -> Optional[datetime]:
    return resolve_timestamp(task, TASK_TIMESTAMP_FIELDS)


def time_log_timestamp(time_log: Dict) -> Optional[datetime]:
    return resolve_timestamp(time_log, TIME_LOG_TIMESTAMP_FIELDS)


def comment_timestamp(comment: Dict) -> Optional[datetime]:
    return resolve_timestamp(comment, COMMENT_TIMESTAMP_FIELDS)


def document_timestamp(document: Dict) -> Optional[datetime]:
    return resolve_timestamp(document, DOCUMENT_TIMESTAMP_FIELDS)
