import itertools
from datetime import datetime

import pytest

from outletdeck.models import Customer, MenuItem, Order, OrderItem

KUNAFA = MenuItem("1", "Kunafa Chocolate", 349.0, "Chocolate")


@pytest.fixture
def make_order():
    counter = itertools.count(1)

    def _make(
        ts: datetime,
        outlet: str | None = "Kondapur",
        total: float = 100.0,
        name: str = "Asha",
        mobile: str = "9000000001",
        items=None,
        status: str = "completed",
    ) -> Order:
        n = next(counter)
        lines = items if items is not None else [(KUNAFA, 1)]
        return Order(
            id=f"KDR-{n}",
            customer=Customer(name=name, mobile=mobile),
            items=tuple(OrderItem(item=i, quantity=q) for i, q in lines),
            subtotal=total,
            discount_amount=0.0,
            tax_rate=0.0,
            tax_amount=0.0,
            total=total,
            payment_type="cash",
            timestamp=ts,
            status=status,
            outlet=outlet,
            db_id=f"db-{n}",
        )

    return _make
