import dataclasses
from datetime import datetime

import pytest

from outletdeck.errors import OrderNotFoundError, OrderValidationError
from outletdeck.menu import MENU_BY_NAME
from outletdeck.models import Customer, OrderItem
from outletdeck.order_store import OrderStore, build_order, order_totals

NOW = datetime(2025, 5, 1, 12, 0)
CART = [
    OrderItem(MENU_BY_NAME["Kunafa Chocolate"], 2),
    OrderItem(MENU_BY_NAME["Almond Basbousa"], 1),
]
ASHA = Customer(name="Asha", mobile="9000000001")


def test_order_totals_apply_discount_before_tax():
    totals = order_totals(CART, discount_percent=10, tax_rate=0.1)
    assert totals["subtotal"] == pytest.approx(997)
    assert totals["discount_amount"] == pytest.approx(99.7)
    assert totals["tax_amount"] == pytest.approx(89.73)
    assert totals["total"] == pytest.approx(987.03)


def test_build_order_ids_and_fields():
    order = build_order(ASHA, CART, "Kondapur", "upi", discount_percent=10, now=NOW)
    assert order.id == f"KDR-{int(NOW.timestamp() * 1000)}"
    assert order.discount_code == "10%"
    assert order.status == "completed"
    assert order.timestamp == NOW
    assert order.total == pytest.approx(
        (order.subtotal - order.discount_amount) * (1 + order.tax_rate)
    )


def test_outlet_codes():
    assert build_order(ASHA, CART, "Kompally", "cash", now=NOW).id.startswith("KPL-")
    assert build_order(ASHA, CART, "Gachibowli", "cash", now=NOW).id.startswith("UNK-")
    assert build_order(ASHA, CART, "Kompally", "cash", now=NOW).discount_code is None


@pytest.mark.parametrize(
    "customer, items, outlet, payment, discount",
    [
        (Customer("", "9000000001"), CART, "Kondapur", "cash", 0),
        (Customer("Asha", ""), CART, "Kondapur", "cash", 0),
        (ASHA, [], "Kondapur", "cash", 0),
        (ASHA, [OrderItem(MENU_BY_NAME["Kunafa Chocolate"], 0)], "Kondapur", "cash", 0),
        (ASHA, CART, "", "cash", 0),
        (ASHA, CART, "Kondapur", "cheque", 0),
        (ASHA, CART, "Kondapur", "cash", 120),
    ],
)
def test_build_order_rejects_invalid_input(customer, items, outlet, payment, discount):
    with pytest.raises(OrderValidationError):
        build_order(customer, items, outlet, payment, discount_percent=discount, now=NOW)


def test_orders_are_immutable():
    order = build_order(ASHA, CART, "Kondapur", "cash", now=NOW)
    with pytest.raises(dataclasses.FrozenInstanceError):
        order.total = 0


def test_store_keeps_newest_first(make_order):
    older = make_order(datetime(2025, 5, 1, 12))
    newer = make_order(datetime(2025, 5, 2, 12))
    store = OrderStore([older, newer])
    assert store.orders == [newer, older]

    latest = build_order(ASHA, CART, "Kondapur", "cash", now=datetime(2025, 5, 3, 12))
    store.add(latest)
    assert store.orders[0] == latest
    assert len(store) == 3
    assert store.version == 1


def test_update_status_replaces_order(make_order):
    order = make_order(datetime(2025, 5, 1, 12))
    store = OrderStore([order])
    updated = store.update_status(order.id, "cancelled")
    assert updated.status == "cancelled"
    assert order.status == "completed"
    assert store.get(order.id).status == "cancelled"
    assert store.version == 1


def test_update_status_errors(make_order):
    order = make_order(datetime(2025, 5, 1, 12))
    store = OrderStore([order])
    with pytest.raises(OrderValidationError):
        store.update_status(order.id, "lost")
    with pytest.raises(OrderNotFoundError):
        store.update_status("KDR-missing", "pending")
    assert store.version == 0


def test_remove_by_db_id(make_order):
    order = make_order(datetime(2025, 5, 1, 12))
    store = OrderStore([order])
    assert store.remove("db-unknown") is False
    assert store.remove(order.db_id) is True
    assert len(store) == 0
    assert store.get(order.id) is None


def test_orders_property_returns_a_copy(make_order):
    store = OrderStore([make_order(datetime(2025, 5, 1, 12))])
    store.orders.clear()
    assert len(store) == 1
