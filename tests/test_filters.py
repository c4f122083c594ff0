import dataclasses
from datetime import date, datetime

import pytest

from outletdeck.config import ALL_STORES
from outletdeck.filters import (
    FilterCriteria,
    filter_orders,
    normalize_outlet,
    parse_week_option,
    week_of_month,
    week_options,
)


def test_store_name_normalization_matches_messy_outlets(make_order):
    orders = [
        make_order(datetime(2025, 5, 3, 12), outlet="Kondapur "),
        make_order(datetime(2025, 5, 4, 12), outlet="  kondapur"),
        make_order(datetime(2025, 5, 5, 12), outlet="Kondapur"),
        make_order(datetime(2025, 5, 6, 12), outlet="Kompally"),
    ]
    result = filter_orders(orders, FilterCriteria(month="2025-05", store="Kondapur"))
    assert [o.outlet for o in result] == ["Kondapur ", "  kondapur", "Kondapur"]


def test_normalize_collapses_internal_whitespace():
    assert normalize_outlet("  Hitech   City ") == "hitech city"
    assert normalize_outlet(None) == ""


def test_all_stores_bypasses_store_filter_including_missing_outlet(make_order):
    orders = [
        make_order(datetime(2025, 5, 3, 12), outlet=None),
        make_order(datetime(2025, 5, 3, 13), outlet=""),
        make_order(datetime(2025, 5, 3, 14), outlet="Kompally"),
    ]
    assert len(filter_orders(orders, FilterCriteria(month="2025-05", store=ALL_STORES))) == 3
    assert filter_orders(orders, FilterCriteria(month="2025-05", store="Kondapur")) == []


def test_month_filter_requires_exact_month(make_order):
    orders = [
        make_order(datetime(2025, 4, 30, 23, 59)),
        make_order(datetime(2025, 5, 1, 0, 0)),
        make_order(datetime(2024, 5, 10, 12)),
    ]
    result = filter_orders(orders, FilterCriteria(month="2025-05"))
    assert [o.timestamp for o in result] == [datetime(2025, 5, 1, 0, 0)]


def test_week_of_month_follows_first_weekday_offset():
    # January 2025 starts on a Wednesday
    assert week_of_month(date(2025, 1, 1)) == 1
    assert week_of_month(date(2025, 1, 5)) == 1
    assert week_of_month(date(2025, 1, 6)) == 2
    assert week_of_month(date(2025, 1, 31)) == 5


def test_week_of_month_when_month_starts_on_sunday():
    # February 2026 starts on a Sunday
    assert week_of_month(date(2026, 2, 1)) == 0
    assert week_of_month(date(2026, 2, 2)) == 1
    assert week_of_month(date(2026, 2, 8)) == 1
    assert week_of_month(date(2026, 2, 9)) == 2


def test_week_options_cover_every_week_of_the_month():
    assert week_options("2025-01") == ["all-weeks", "week-1", "week-2", "week-3", "week-4", "week-5"]
    assert week_options("2026-02")[:2] == ["all-weeks", "week-0"]


def test_parse_week_option():
    assert parse_week_option("all-weeks") is None
    assert parse_week_option("week-3") == 3


def test_week_filter(make_order):
    orders = [
        make_order(datetime(2025, 1, 2, 12)),
        make_order(datetime(2025, 1, 7, 12)),
        make_order(datetime(2025, 1, 8, 12)),
    ]
    result = filter_orders(orders, FilterCriteria(month="2025-01", week_of_month=2))
    assert [o.timestamp.day for o in result] == [7, 8]


def test_search_matches_id_name_and_raw_mobile(make_order):
    orders = [
        make_order(datetime(2025, 5, 3, 12), name="Asha Rao", mobile="98765 43210"),
        make_order(datetime(2025, 5, 3, 13), name="Ravi", mobile="9123456780"),
    ]
    month = "2025-05"
    assert len(filter_orders(orders, FilterCriteria(month=month, search_term="kdr-2"))) == 1
    assert len(filter_orders(orders, FilterCriteria(month=month, search_term="ASHA"))) == 1
    assert len(filter_orders(orders, FilterCriteria(month=month, search_term="98765 4"))) == 1
    assert filter_orders(orders, FilterCriteria(month=month, search_term="9876543210")) == []
    assert len(filter_orders(orders, FilterCriteria(month=month, search_term=""))) == 2


def test_filter_is_pure(make_order):
    orders = [make_order(datetime(2025, 5, 3, 12)), make_order(datetime(2025, 6, 3, 12))]
    snapshot = list(orders)
    criteria = FilterCriteria(month="2025-05")
    assert filter_orders(orders, criteria) == filter_orders(orders, criteria)
    assert orders == snapshot


def test_criteria_are_immutable():
    criteria = FilterCriteria(month="2025-05")
    with pytest.raises(dataclasses.FrozenInstanceError):
        criteria.month = "2025-06"
