"""Reporting time windows.

Every reporting tool accepts a ``period`` enumeration and turns it into a
``DateRange`` with the same calendar rules: weeks start on Monday, ranges
that run "to date" end at the end of the current day, and ``all_time`` has no
start.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

PERIODS: Tuple[str, ...] = (
    "today",
    "yesterday",
    "this_week",
    "last_week",
    "this_month",
    "last_month",
    "this_year",
    "7_days",
    "30_days",
    "90_days",
    "last_30_days",
    "last_90_days",
    "all_time",
)

PERIOD_LABELS = {
    "today": "Today",
    "yesterday": "Yesterday",
    "this_week": "This Week",
    "last_week": "Last Week",
    "this_month": "This Month",
    "last_month": "Last Month",
    "this_year": "This Year",
    "7_days": "Last 7 Days",
    "30_days": "Last 30 Days",
    "90_days": "Last 90 Days",
    "last_30_days": "Last 30 Days",
    "last_90_days": "Last 90 Days",
    "all_time": "All Time",
}

COMPARISON_LABELS = {
    "today": "yesterday",
    "yesterday": "the day before",
    "this_week": "last week",
    "last_week": "the week before",
    "this_month": "last month",
    "last_month": "the month before",
    "this_year": "last year",
}


@dataclass(frozen=True)
class DateRange:
    """Inclusive datetime window; ``start`` is None for unbounded ranges."""
    start: Optional[datetime]
    end: datetime

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        return moment <= self.end

    @property
    def days(self) -> int:
        """Number of calendar days touched by the range."""
        if self.start is None:
            return 0
        return (self.end.date() - self.start.date()).days + 1

    def to_dict(self) -> dict:
        return {
            "start_date": self.start.date().isoformat() if self.start else None,
            "end_date": self.end.date().isoformat(),
        }


def start_of_day(day) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.min)


def end_of_day(day) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.max)


def start_of_week(day: date) -> date:
    return day - timedelta(days=day.weekday())


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_previous_month(day: date) -> date:
    return start_of_month(day) - timedelta(days=1)


def resolve_period(period: str, now: datetime, default: str = "today") -> DateRange:
    """
    Resolve a period enumeration to a date range.

    Args:
        period: One of :data:`PERIODS`
        now: Current moment
        default: Period used when ``period`` is not recognised

    Returns:
        DateRange for the period
    """
    if period not in PERIODS:
        period = default

    today = now.date()

    if period == "today":
        return DateRange(start_of_day(today), end_of_day(today))
    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return DateRange(start_of_day(yesterday), end_of_day(yesterday))
    if period == "this_week":
        return DateRange(start_of_day(start_of_week(today)), end_of_day(today))
    if period == "last_week":
        monday = start_of_week(today) - timedelta(days=7)
        return DateRange(start_of_day(monday), end_of_day(monday + timedelta(days=6)))
    if period == "this_month":
        return DateRange(start_of_day(start_of_month(today)), end_of_day(today))
    if period == "last_month":
        last_day = end_of_previous_month(today)
        return DateRange(start_of_day(start_of_month(last_day)), end_of_day(last_day))
    if period == "this_year":
        return DateRange(start_of_day(today.replace(month=1, day=1)), end_of_day(today))
    if period in ("7_days", "30_days", "90_days"):
        days = int(period.split("_")[0])
        return DateRange(now - timedelta(days=days), now)
    if period in ("last_30_days", "last_90_days"):
        days = int(period.split("_")[1])
        return DateRange(start_of_day(today - timedelta(days=days - 1)), end_of_day(today))
    # all_time
    return DateRange(None, end_of_day(today))


def previous_period(period: str, current: DateRange, now: datetime) -> DateRange:
    """
    Window to compare ``current`` against.

    ``this_week``/``this_month``/``this_year`` compare with the whole previous
    calendar unit; everything else with the same number of days immediately
    before.
    """
    today = now.date()

    if period == "this_week":
        return resolve_period("last_week", now)
    if period == "this_month":
        return resolve_period("last_month", now)
    if period == "this_year":
        last_year = today.year - 1
        return DateRange(
            start_of_day(date(last_year, 1, 1)),
            end_of_day(date(last_year, 12, 31)),
        )
    if current.start is None:
        return current

    span = timedelta(days=current.days)
    return DateRange(current.start - span, current.end - span)


def period_label(period: str) -> str:
    return PERIOD_LABELS.get(period, period.replace("_", " ").capitalize())


def comparison_label(period: str) -> str:
    return COMPARISON_LABELS.get(period, "the previous period")
