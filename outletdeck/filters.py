import calendar
import math
import re
from dataclasses import dataclass
from datetime import date, datetime

from outletdeck.config import ALL_STORES, ALL_WEEKS
from outletdeck.models import Order, month_key

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class FilterCriteria:
    """
    The user's current selection, passed explicitly into every query.

    month: "YYYY-MM"
    store: outlet name or ALL_STORES
    week_of_month: 1-based week number, or None for the whole month
    search_term: free text matched against id, customer name and mobile
    """

    month: str
    store: str = ALL_STORES
    week_of_month: int | None = None
    search_term: str = ""


def normalize_outlet(name: str | None) -> str:
    return _WHITESPACE.sub(" ", name or "").strip().lower()


def matches_store(order: Order, store: str) -> bool:
    if store == ALL_STORES:
        return True
    return normalize_outlet(order.outlet) == normalize_outlet(store)


def week_of_month(day: date | datetime) -> int:
    """
    ceil((day_of_month + weekday_of_first - 1) / 7), weekday 0 = Sunday.

    Sundays close a week under this numbering, and a month whose 1st is a
    Sunday puts that day in week 0.
    """
    first = day.replace(day=1)
    # weekday() is Monday=0; shift so Sunday=0
    first_offset = (first.weekday() + 1) % 7
    return math.ceil((day.day + first_offset - 1) / 7)


def month_weeks(month: str) -> list[int]:
    """Distinct week numbers the days of `month` fall into, ascending."""
    year, mon = parse_month(month)
    days = calendar.monthrange(year, mon)[1]
    return sorted({week_of_month(date(year, mon, d)) for d in range(1, days + 1)})


def week_options(month: str) -> list[str]:
    """UI options for the week selector: 'all-weeks', 'week-1', ..."""
    return [ALL_WEEKS] + [f"week-{n}" for n in month_weeks(month)]


def parse_week_option(option: str) -> int | None:
    if not option or option == ALL_WEEKS:
        return None
    return int(option.split("-")[1])


def parse_month(month: str) -> tuple[int, int]:
    year, mon = month.split("-")
    return int(year), int(mon)


def matches_search(order: Order, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    return (
        needle in order.id.lower()
        or needle in (order.customer.name or "").lower()
        or term in (order.customer.mobile or "")
    )


def filter_orders(orders: list[Order], criteria: FilterCriteria) -> list[Order]:
    """Orders matching every part of `criteria`, in input order."""
    result = []
    for order in orders:
        if month_key(order.timestamp) != criteria.month:
            continue
        if not matches_store(order, criteria.store):
            continue
        if criteria.week_of_month is not None and week_of_month(order.timestamp) != criteria.week_of_month:
            continue
        if not matches_search(order, criteria.search_term):
            continue
        result.append(order)
    return result
