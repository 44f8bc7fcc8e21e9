"""Timezone helpers for date boundary logic."""

from __future__ import annotations

import re
from datetime import date, datetime
from zoneinfo import ZoneInfo

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today_local(tz_name: str) -> date:
    """Return the current date in the given timezone."""
    return datetime.now(tz=ZoneInfo(tz_name)).date()


def is_valid_date_string(value: str) -> bool:
    """Return True if value is a real calendar date formatted YYYY-MM-DD."""
    if not _DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def format_local_time(moment: datetime, tz_name: str) -> str:
    """Format an aware datetime as 'YYYY-MM-DD HH:MM:SS' in the given timezone."""
    return moment.astimezone(ZoneInfo(tz_name)).strftime("%Y-%m-%d %H:%M:%S")


def epoch_millis(moment: datetime) -> int:
    """Return milliseconds since the Unix epoch."""
    return int(moment.timestamp() * 1000)
