# business_days.py — Local business calendar helpers
"""
"Today" is always taken in the operator's business timezone, not UTC, so a
transition stamped late in the evening lands on the operator's calendar day.
"""
import os
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/New_York")

SATURDAY = 5
SUNDAY = 6


def today_local(tz_name: str = None) -> date:
    """Current date in the business timezone."""
    return datetime.now(ZoneInfo(tz_name or BUSINESS_TIMEZONE)).date()


def is_business_day(day: date) -> bool:
    return day.weekday() not in (SATURDAY, SUNDAY)


def add_business_days(start: date, days: int) -> date:
    """Add `days` business days to `start`, skipping weekends."""
    result = start
    added = 0
    while added < days:
        result += timedelta(days=1)
        if is_business_day(result):
            added += 1
    return result


def next_business_day(start: date) -> date:
    """First weekday strictly after `start`."""
    return add_business_days(start, 1)


def business_days_between(start: date, end: date) -> int:
    count = 0
    current = start
    while current < end:
        current += timedelta(days=1)
        if is_business_day(current):
            count += 1
    return count
