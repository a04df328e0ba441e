from datetime import date, datetime, timedelta

from shopmata.periods import (
    DateRange,
    comparison_label,
    period_label,
    previous_period,
    resolve_period,
    start_of_week,
)
from tests.conftest import NOW


def test_today_spans_whole_day():
    r = resolve_period("today", NOW)
    assert r.start == datetime(2024, 6, 12, 0, 0)
    assert r.end.date() == date(2024, 6, 12)
    assert r.end.hour == 23 and r.end.minute == 59


def test_weeks_start_on_monday():
    assert start_of_week(date(2024, 6, 12)) == date(2024, 6, 10)
    assert start_of_week(date(2024, 6, 10)) == date(2024, 6, 10)
    assert start_of_week(date(2024, 6, 16)) == date(2024, 6, 10)

    this_week = resolve_period("this_week", NOW)
    assert this_week.start == datetime(2024, 6, 10)
    assert this_week.end.date() == date(2024, 6, 12)

    last_week = resolve_period("last_week", NOW)
    assert last_week.start == datetime(2024, 6, 3)
    assert last_week.end.date() == date(2024, 6, 9)


def test_month_and_year_periods():
    assert resolve_period("this_month", NOW).start == datetime(2024, 6, 1)

    last_month = resolve_period("last_month", NOW)
    assert last_month.start == datetime(2024, 5, 1)
    assert last_month.end.date() == date(2024, 5, 31)

    assert resolve_period("this_year", NOW).start == datetime(2024, 1, 1)


def test_last_month_across_year_boundary():
    r = resolve_period("last_month", datetime(2024, 1, 15, 9, 0))
    assert r.start == datetime(2023, 12, 1)
    assert r.end.date() == date(2023, 12, 31)


def test_rolling_windows_end_now():
    r = resolve_period("30_days", NOW)
    assert r.start == NOW - timedelta(days=30)
    assert r.end == NOW


def test_last_n_days_includes_today():
    r = resolve_period("last_30_days", NOW)
    assert r.start == datetime(2024, 5, 14)
    assert r.end.date() == date(2024, 6, 12)
    assert r.days == 30


def test_all_time_has_no_start():
    r = resolve_period("all_time", NOW)
    assert r.start is None
    assert r.days == 0
    assert r.contains(datetime(1999, 1, 1))
    assert r.to_dict() == {"start_date": None, "end_date": "2024-06-12"}


def test_unknown_period_uses_default():
    assert resolve_period("fortnight", NOW) == resolve_period("today", NOW)
    assert resolve_period("fortnight", NOW, default="this_month") == resolve_period("this_month", NOW)


def test_previous_period_uses_whole_previous_unit():
    this_month = resolve_period("this_month", NOW)
    assert previous_period("this_month", this_month, NOW) == resolve_period("last_month", NOW)

    this_year = resolve_period("this_year", NOW)
    previous = previous_period("this_year", this_year, NOW)
    assert previous.start == datetime(2023, 1, 1)
    assert previous.end.date() == date(2023, 12, 31)


def test_previous_period_shifts_same_length_back():
    today = resolve_period("today", NOW)
    assert previous_period("today", today, NOW) == resolve_period("yesterday", NOW)

    last_week = resolve_period("last_week", NOW)
    before = previous_period("last_week", last_week, NOW)
    assert before.start == datetime(2024, 5, 27)
    assert before.end.date() == date(2024, 6, 2)


def test_date_range_contains_is_inclusive():
    r = DateRange(datetime(2024, 6, 1), datetime(2024, 6, 2))
    assert r.contains(datetime(2024, 6, 1))
    assert r.contains(datetime(2024, 6, 2))
    assert not r.contains(datetime(2024, 6, 2, 0, 0, 1))


def test_labels():
    assert period_label("last_30_days") == "Last 30 Days"
    assert period_label("some_thing") == "Some thing"
    assert comparison_label("this_week") == "last week"
    assert comparison_label("30_days") == "the previous period"
