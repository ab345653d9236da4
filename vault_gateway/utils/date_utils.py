"""Timestamp and day-bucket utilities"""

from datetime import date, datetime, timezone

SECONDS_PER_DAY = 86_400


def day_bucket(timestamp: int) -> int:
    """Calendar-day index (UTC) used to scope daily limits"""
    return timestamp // SECONDS_PER_DAY


def days_between(start: int, end: int) -> int:
    """Whole days elapsed from start to end, never negative"""
    if end <= start:
        return 0
    return (end - start) // SECONDS_PER_DAY


def bucket_to_date(bucket: int) -> date:
    """Convert a day bucket back to its UTC calendar date"""
    return datetime.fromtimestamp(bucket * SECONDS_PER_DAY, tz=timezone.utc).date()
