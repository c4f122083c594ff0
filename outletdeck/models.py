"""Domain models for OutletDeck."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime

PAYMENT_TYPES = ("cash", "card", "upi")
ORDER_STATUSES = ("pending", "completed", "cancelled")


@dataclass(frozen=True)
class MenuItem:
    """A product that can be put on an order."""

    id: str
    name: str
    price: float
    category: str = "Uncategorized"
    description: str = ""


@dataclass(frozen=True)
class OrderItem:
    item: MenuItem
    quantity: int

    @property
    def line_total(self) -> float:
        return self.item.price * self.quantity


@dataclass(frozen=True)
class Customer:
    name: str
    mobile: str


@dataclass(frozen=True)
class Order:
    """
    A completed transaction.

    Orders never change after creation except for `status`; use
    `with_status` to get the updated copy.
    """

    id: str
    customer: Customer
    items: tuple[OrderItem, ...]
    subtotal: float
    discount_amount: float
    tax_rate: float
    tax_amount: float
    total: float
    payment_type: str
    timestamp: datetime
    status: str = "completed"
    outlet: str | None = None
    discount_code: str | None = None
    db_id: str | None = None

    def with_status(self, status: str) -> "Order":
        return replace(self, status=status)


@dataclass(frozen=True)
class TimeSlot:
    """A fixed time-of-day bucket, bounds in fractional hours."""

    label: str
    start: float
    end: float
    icon: str = ""

    @property
    def wraps_midnight(self) -> bool:
        return self.end > 24

    def contains(self, hour: float) -> bool:
        if self.wraps_midnight:
            return hour >= self.start or hour < self.end - 24
        return self.start <= hour < self.end


@dataclass(frozen=True)
class SlotCount:
    slot: TimeSlot
    count: int


@dataclass(frozen=True)
class Metrics:
    total_orders: int
    total_revenue: float
    avg_order_value: float
    avg_orders_per_day: float
    slot_counts: list[SlotCount] = field(default_factory=list)


@dataclass(frozen=True)
class RankedItem:
    id: str
    name: str
    units_sold: int
    revenue: float
    percentage: float = 0.0


@dataclass(frozen=True)
class TopSellers:
    top: list[RankedItem]
    others_percentage: float
    total_units_sold: int


@dataclass(frozen=True)
class CustomerSummary:
    name: str
    mobile: str
    total_orders: int
    total_spent: float
    last_ordered: datetime
    outlets: list[str]


@dataclass(frozen=True)
class DaySeries:
    day: str          # "Sun" .. "Sat"
    date: date
    count: int
    revenue: float


def month_key(ts: datetime) -> str:
    """'YYYY-MM' of a timestamp."""
    return f"{ts.year:04d}-{ts.month:02d}"


def fractional_hour(ts: datetime) -> float:
    return ts.hour + ts.minute / 60
