from outletdeck.filters import matches_store
from outletdeck.metrics import count_slots
from outletdeck.models import Order, SlotCount, TimeSlot, month_key


def orders_before_month(all_orders: list[Order], selected_month: str, store: str) -> list[Order]:
    """Orders from months strictly before `selected_month` at `store`."""
    return [
        o for o in all_orders
        if month_key(o.timestamp) < selected_month and matches_store(o, store)
    ]


def resolve_peak_slot(
    slot_counts: list[SlotCount],
    all_orders: list[Order],
    selected_month: str,
    store: str,
) -> TimeSlot | None:
    """
    Busiest time slot of the selected period.

    A tie on the current counts is settled by each tied slot's cumulative
    count over all prior months at the same store. If that ties as well,
    the tied slot listed first wins.
    """
    if sum(sc.count for sc in slot_counts) == 0:
        return None

    with_orders = [sc for sc in slot_counts if sc.count > 0]
    if not with_orders:
        return None

    max_count = max(sc.count for sc in with_orders)
    top = [sc.slot for sc in with_orders if sc.count == max_count]
    if len(top) == 1:
        return top[0]

    history = count_slots(orders_before_month(all_orders, selected_month, store), top)

    winner = history[0]
    for candidate in history[1:]:
        if candidate.count > winner.count:
            winner = candidate
    return winner.slot
