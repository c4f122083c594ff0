import calendar

from outletdeck.filters import parse_month
from outletdeck.frames import orders_to_frame, safe_div, slot_mask
from outletdeck.models import Metrics, Order, SlotCount, TimeSlot

# Late Night runs 23:30 -> 11:30 next day, hence the end past 24
TIME_SLOTS = [
    TimeSlot("11:30 AM - 3:30 PM", 11.5, 15.5, "🌅"),
    TimeSlot("3:30 PM - 7:30 PM", 15.5, 19.5, "☀️"),
    TimeSlot("7:30 PM - 11:30 PM", 19.5, 23.5, "🌆"),
    TimeSlot("Late Night", 23.5, 35.5, "🌙"),
]


def days_in_month(month: str) -> int:
    year, mon = parse_month(month)
    return calendar.monthrange(year, mon)[1]


def count_slots(orders: list[Order], slots: list[TimeSlot] = TIME_SLOTS) -> list[SlotCount]:
    hours = orders_to_frame(orders)["HOUR"]
    return [SlotCount(slot, int(slot_mask(hours, slot).sum())) for slot in slots]


def compute_metrics(filtered_orders: list[Order], selected_month: str) -> Metrics:
    """
    Headline numbers for the dashboard.

    Averages resolve to 0 when there are no orders.
    """
    df = orders_to_frame(filtered_orders)

    total_orders = len(df)
    total_revenue = float(df["TOTAL"].sum()) if total_orders else 0.0

    return Metrics(
        total_orders=total_orders,
        total_revenue=total_revenue,
        avg_order_value=safe_div(total_revenue, total_orders),
        avg_orders_per_day=safe_div(total_orders, days_in_month(selected_month)),
        slot_counts=[
            SlotCount(slot, int(slot_mask(df["HOUR"], slot).sum()))
            for slot in TIME_SLOTS
        ],
    )
