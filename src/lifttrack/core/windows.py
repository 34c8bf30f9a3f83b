"""
Calendar windows used by the status resolver and consistency metrics.

Every window is a half-open [start, end) pair of naive datetimes derived
from an explicit reference time, so callers never read the wall clock.
"""

from datetime import date, datetime, time, timedelta

Window = tuple[datetime, datetime]


def day_window(day: date) -> Window:
    """Midnight to midnight of one calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def week_window(now: datetime) -> Window:
    """Monday 00:00 to the following Monday 00:00 of the ISO week containing now."""
    monday = now.date() - timedelta(days=now.weekday())
    start = datetime.combine(monday, time.min)
    return start, start + timedelta(days=7)


def month_window(now: datetime) -> Window:
    """First day of now's month to the first day of the next month."""
    start = datetime.combine(now.date().replace(day=1), time.min)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def days_between(earlier: date, later: date) -> int:
    """Whole calendar days from earlier to later (negative if reversed)."""
    return (later - earlier).days


def program_week(plan_start: date, today: date) -> int:
    """
    1-based program week label.

    programWeek = floor(daysSinceStart / 7) + 1.  Floor division keeps the
    label well-defined if the start date lies in the future.
    """
    return days_between(plan_start, today) // 7 + 1
