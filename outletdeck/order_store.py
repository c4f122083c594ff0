import logging
from collections.abc import Iterable
from datetime import datetime

from outletdeck.config import DEFAULT_TAX_RATE, outlet_code
from outletdeck.errors import OrderNotFoundError, OrderValidationError
from outletdeck.models import (
    ORDER_STATUSES,
    PAYMENT_TYPES,
    Customer,
    Order,
    OrderItem,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# ORDER ENTRY
# ------------------------------------------------------------

def order_totals(items: Iterable[OrderItem], discount_percent: float = 0.0,
                 tax_rate: float = DEFAULT_TAX_RATE) -> dict:
    """
    subtotal, discount_amount, tax_amount and total for a cart.

    The percentage discount comes off the subtotal before tax.
    """
    subtotal = sum(it.line_total for it in items)
    discount_amount = subtotal * (discount_percent / 100) if discount_percent > 0 else 0.0
    discounted = subtotal - discount_amount
    tax_amount = discounted * tax_rate
    return {
        "subtotal": subtotal,
        "discount_amount": discount_amount,
        "tax_amount": tax_amount,
        "total": discounted + tax_amount,
    }


def build_order(
    customer: Customer,
    items: list[OrderItem],
    outlet: str,
    payment_type: str,
    discount_percent: float = 0.0,
    tax_rate: float = DEFAULT_TAX_RATE,
    now: datetime | None = None,
) -> Order:
    """Turn a completed cart into an Order with an outlet-coded id."""
    if not customer.name or not customer.mobile:
        raise OrderValidationError("Customer name and mobile are required")
    if not items:
        raise OrderValidationError("An order needs at least one item")
    if any(it.quantity <= 0 for it in items):
        raise OrderValidationError("Item quantities must be positive")
    if not outlet:
        raise OrderValidationError("Select a store for the order")
    if payment_type not in PAYMENT_TYPES:
        raise OrderValidationError(f"Unknown payment type: {payment_type!r}")
    if not 0 <= discount_percent <= 100:
        raise OrderValidationError("Discount must be between 0 and 100 percent")

    now = now or datetime.now()
    totals = order_totals(items, discount_percent, tax_rate)

    return Order(
        id=f"{outlet_code(outlet)}-{int(now.timestamp() * 1000)}",
        customer=customer,
        items=tuple(items),
        subtotal=totals["subtotal"],
        discount_amount=totals["discount_amount"],
        tax_rate=tax_rate,
        tax_amount=totals["tax_amount"],
        total=totals["total"],
        payment_type=payment_type,
        timestamp=now,
        status="completed",
        outlet=outlet,
        discount_code=f"{discount_percent:g}%" if discount_percent > 0 else None,
    )


# ------------------------------------------------------------
# IN-MEMORY ORDER STORE
# ------------------------------------------------------------

class OrderStore:
    """
    Holds every loaded order, newest first.

    `version` goes up on each change so callers can key caches on it.
    """

    def __init__(self, orders: Iterable[Order] = ()):
        self._orders: list[Order] = sorted(orders, key=lambda o: o.timestamp, reverse=True)
        self.version = 0

    @property
    def orders(self) -> list[Order]:
        return list(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def add(self, order: Order) -> None:
        self._orders.insert(0, order)
        self.version += 1
        logger.info("Order %s added (%d in store)", order.id, len(self._orders))

    def get(self, order_id: str) -> Order | None:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def update_status(self, order_id: str, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise OrderValidationError(f"Unknown order status: {status!r}")
        for idx, order in enumerate(self._orders):
            if order.id == order_id:
                updated = order.with_status(status)
                self._orders[idx] = updated
                self.version += 1
                logger.info("Order %s status -> %s", order_id, status)
                return updated
        raise OrderNotFoundError(order_id)

    def remove(self, db_id: str) -> bool:
        before = len(self._orders)
        self._orders = [o for o in self._orders if o.db_id != db_id]
        removed = len(self._orders) < before
        if removed:
            self.version += 1
            logger.info("Order with db id %s removed", db_id)
        return removed
