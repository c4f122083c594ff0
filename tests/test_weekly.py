from datetime import date, datetime

import pytest

from outletdeck.config import ALL_STORES
from outletdeck.weekly import build_week_series, sunday_on_or_before, week_label, week_start


def test_sunday_on_or_before():
    assert sunday_on_or_before(date(2025, 1, 1)) == date(2024, 12, 29)
    assert sunday_on_or_before(date(2025, 1, 5)) == date(2025, 1, 5)


def test_week_start_with_offset():
    # January 2025 starts on a Wednesday
    assert week_start("2025-01", 0) == date(2024, 12, 29)
    assert week_start("2025-01", 1) == date(2025, 1, 5)
    assert week_start("2025-01", -1) == date(2024, 12, 22)


def test_first_week_includes_previous_month_days(make_order):
    orders = [
        make_order(datetime(2024, 12, 29, 10), total=50),
        make_order(datetime(2024, 12, 31, 22), total=30),
        make_order(datetime(2025, 1, 1, 12), total=20),
        make_order(datetime(2025, 1, 1, 18), total=25),
        make_order(datetime(2025, 1, 1, 18), outlet="Kompally", total=99),
        make_order(datetime(2025, 1, 4, 12), total=40),
        make_order(datetime(2025, 1, 5, 12), total=60),
    ]
    series = build_week_series(orders, "2025-01", 0, "Kondapur")

    assert [d.day for d in series] == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    assert series[0].date == date(2024, 12, 29)
    assert [d.count for d in series] == [1, 0, 1, 2, 0, 0, 1]
    assert series[3].revenue == pytest.approx(45)
    assert series[6].date == date(2025, 1, 4)


def test_all_stores_week_and_offset(make_order):
    orders = [
        make_order(datetime(2025, 1, 1, 18), total=25),
        make_order(datetime(2025, 1, 1, 19), outlet="Kompally", total=99),
        make_order(datetime(2025, 1, 6, 12), total=60),
    ]
    assert build_week_series(orders, "2025-01", 0, ALL_STORES)[3].count == 2
    next_week = build_week_series(orders, "2025-01", 1, ALL_STORES)
    assert next_week[0].date == date(2025, 1, 5)
    assert [d.count for d in next_week] == [0, 1, 0, 0, 0, 0, 0]


def test_empty_week_is_zero_filled():
    series = build_week_series([], "2025-01", 0, ALL_STORES)
    assert len(series) == 7
    assert all(d.count == 0 and d.revenue == 0 for d in series)


@pytest.mark.parametrize(
    "offset, today, label",
    [
        (0, date(2025, 1, 1), "Current Week"),
        (0, date(2025, 1, 8), "Previous Week"),
        (0, date(2025, 1, 20), "3 Weeks Ago"),
        (1, date(2025, 1, 1), "Next Week"),
        (2, date(2025, 1, 1), "2 Weeks Ahead"),
    ],
)
def test_week_label(offset, today, label):
    assert week_label("2025-01", offset, today=today) == label
