"""
Snapshot day logic.

Snapshots are keyed by calendar date in the market's local time. A scrape that
finishes at 11:30 PM Eastern must land on that evening's date, not on the
following UTC date.

Example: 2024-03-02 03:30 UTC is 2024-03-01 22:30 in America/New_York,
         so its snapshot date is 2024-03-01.
"""
from datetime import datetime, date, timedelta
from typing import Optional, Tuple
import pytz


def get_snapshot_date(dt: Optional[datetime] = None, timezone: str = "America/New_York") -> date:
    """
    Convert a datetime to the snapshot date in the given market timezone.

    Args:
        dt: The moment to convert. Naive datetimes are treated as UTC.
            None means "now".
        timezone: IANA timezone string (e.g., "America/New_York")

    Returns:
        The local calendar date

    Examples:
        >>> get_snapshot_date(datetime(2024, 3, 2, 3, 30, tzinfo=pytz.UTC))
        datetime.date(2024, 3, 1)
        >>> get_snapshot_date(datetime(2024, 3, 2, 15, 0, tzinfo=pytz.UTC))
        datetime.date(2024, 3, 2)
    """
    if dt is None:
        dt = datetime.now(pytz.UTC)
    elif dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)

    tz = pytz.timezone(timezone)
    return dt.astimezone(tz).date()


def get_period_bounds(days: int, end_date: date) -> Tuple[date, date]:
    """
    Return (start_date, end_date) for a depletion window of `days` days.

    The start date is `days` calendar days before the end date, so a 7-day
    window ending on a Sunday starts on the previous Sunday.
    """
    return end_date - timedelta(days=days), end_date
