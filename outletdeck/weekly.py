from datetime import date, timedelta

from outletdeck.config import ALL_STORES
from outletdeck.filters import normalize_outlet, parse_month
from outletdeck.frames import orders_to_frame
from outletdeck.models import DaySeries, Order

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def sunday_on_or_before(day: date) -> date:
    # weekday() is Monday=0, Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_start(selected_month: str, week_offset: int) -> date:
    """Sunday of the charted week: the grid's first Sunday plus `week_offset` weeks."""
    year, mon = parse_month(selected_month)
    return sunday_on_or_before(date(year, mon, 1)) + timedelta(weeks=week_offset)


def build_week_series(
    all_orders: list[Order],
    selected_month: str,
    week_offset: int,
    store: str,
) -> list[DaySeries]:
    """
    Order count and revenue for each day Sun..Sat of the charted week.

    Reads the full order list rather than the month-filtered one so weeks
    that straddle a month boundary still show both months' orders.
    """
    start = week_start(selected_month, week_offset)
    days = [start + timedelta(days=i) for i in range(7)]

    df = orders_to_frame(all_orders)
    if store != ALL_STORES:
        df = df[df["STORE_KEY"] == normalize_outlet(store)]
    df = df[df["DATE"].isin(days)]

    per_day = df.groupby("DATE").agg(COUNT=("ORDER_ID", "count"), REVENUE=("TOTAL", "sum"))

    series = []
    for name, day in zip(DAY_NAMES, days):
        if day in per_day.index:
            count = int(per_day.at[day, "COUNT"])
            revenue = float(per_day.at[day, "REVENUE"])
        else:
            count, revenue = 0, 0.0
        series.append(DaySeries(day=name, date=day, count=count, revenue=revenue))
    return series


def week_label(selected_month: str, week_offset: int, today: date | None = None) -> str:
    target = week_start(selected_month, week_offset)
    current = sunday_on_or_before(today or date.today())

    diff = (target - current).days // 7
    if diff == 0:
        return "Current Week"
    if diff == -1:
        return "Previous Week"
    if diff == 1:
        return "Next Week"
    if diff < 0:
        return f"{abs(diff)} Weeks Ago"
    return f"{diff} Weeks Ahead"
