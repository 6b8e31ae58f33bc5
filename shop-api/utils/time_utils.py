"""
Time utilities
"""
import calendar
import time
from datetime import datetime, timedelta, timezone

def now() -> datetime:
    """Get current UTC time"""
    return datetime.now(timezone.utc)

def now_ms() -> int:
    """Get current timestamp in milliseconds"""
    return int(time.time() * 1000)

def ms_from_now(milliseconds: int) -> datetime:
    """UTC time the given number of milliseconds from now"""
    return now() + timedelta(milliseconds=milliseconds)

def months_ago(months: int, reference: datetime = None) -> datetime:
    """Same day-of-month ``months`` calendar months back, clamped to that month's last day"""
    reference = reference or now()
    month_index = reference.year * 12 + (reference.month - 1) - months
    year, month = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return reference.replace(year=year, month=month + 1, day=min(reference.day, last_day))
