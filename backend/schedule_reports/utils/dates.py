"""
Schedule Reports - Date Helpers
Calendar-week arithmetic used to bucket activity-progress records.
Weeks run Monday to Sunday.
"""
import calendar
from datetime import date, datetime, timedelta
from typing import Union

from schedule_reports.schemas.report import ReportPeriod, WeekKey

DateLike = Union[date, datetime]

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def week_start(value: DateLike) -> date:
    """Monday of the week containing value."""
    d = _as_date(value)
    return d - timedelta(days=d.weekday())


def week_end(value: DateLike) -> date:
    """Sunday of the week containing value."""
    return week_start(value) + timedelta(days=6)


def week_key(value: DateLike) -> WeekKey:
    return WeekKey(week_start(value), week_end(value))


def iso_week_number(value: DateLike) -> int:
    """ISO-8601 week number (1-53)."""
    return _as_date(value).isocalendar()[1]


def day_of_week(value: DateLike) -> int:
    """0 = Monday ... 6 = Sunday."""
    return _as_date(value).weekday()


def is_same_day(a: DateLike, b: DateLike) -> bool:
    return _as_date(a) == _as_date(b)


def _subtract_months(value: datetime, months: int) -> datetime:
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def period_start(period: ReportPeriod, now: datetime) -> datetime:
    """
    Start of a comparative-report period ending at now.

    Raises:
        ValueError: If period is not week, month or quarter
    """
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return _subtract_months(now, 1)
    if period == "quarter":
        return _subtract_months(now, 3)
    raise ValueError(f"Unknown report period: {period!r}")
