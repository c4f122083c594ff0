import csv

import pandas as pd

from outletdeck.filters import normalize_outlet
from outletdeck.models import Order, TimeSlot, fractional_hour, month_key

ORDER_COLUMNS = [
    "ORDER_ID", "DB_ID", "CUSTOMER_NAME", "MOBILE", "OUTLET", "STORE_KEY",
    "TIMESTAMP", "DATE", "MONTH", "HOUR", "TOTAL", "PAYMENT_TYPE", "STATUS",
    "ITEM_COUNT",
]

ITEM_COLUMNS = ["ORDER_ID", "ITEM_ID", "ITEM_NAME", "QTY", "PRICE", "REVENUE"]

EXPORT_COLUMNS = [
    "Order ID", "Date", "Customer Name", "Customer Mobile", "Items",
    "Payment Type", "Total",
]


# ------------------------------------------------------------
# ORDERS -> DATAFRAMES
# ------------------------------------------------------------

def orders_to_frame(orders: list[Order]) -> pd.DataFrame:
    """
    One row per order, UPPERCASE columns.

    Row order follows `orders`; STORE_KEY holds the normalized outlet and
    HOUR the fractional local hour used for slot bucketing.
    """
    rows = [
        (
            o.id,
            o.db_id,
            o.customer.name or "",
            o.customer.mobile or "",
            o.outlet or "",
            normalize_outlet(o.outlet),
            o.timestamp,
            o.timestamp.date(),
            month_key(o.timestamp),
            fractional_hour(o.timestamp),
            float(o.total),
            o.payment_type,
            o.status,
            len(o.items),
        )
        for o in orders
    ]
    df = pd.DataFrame(rows, columns=ORDER_COLUMNS)
    df["TIMESTAMP"] = pd.to_datetime(df["TIMESTAMP"])
    df["HOUR"] = pd.to_numeric(df["HOUR"]).astype(float)
    df["TOTAL"] = pd.to_numeric(df["TOTAL"]).astype(float)
    return df


def line_items_to_frame(orders: list[Order]) -> pd.DataFrame:
    """One row per line item across `orders`, in encounter order."""
    rows = [
        (o.id, it.item.id, it.item.name, it.quantity, it.item.price, it.line_total)
        for o in orders
        for it in o.items
    ]
    df = pd.DataFrame(rows, columns=ITEM_COLUMNS)
    df["QTY"] = pd.to_numeric(df["QTY"]).astype(int)
    df["REVENUE"] = pd.to_numeric(df["REVENUE"]).astype(float)
    return df


def slot_mask(hours: pd.Series, slot: TimeSlot) -> pd.Series:
    """Boolean mask of `hours` falling inside `slot` (wrap-aware)."""
    if slot.wraps_midnight:
        return (hours >= slot.start) | (hours < slot.end - 24)
    return (hours >= slot.start) & (hours < slot.end)


# ------------------------------------------------------------
# HELPERS
# ------------------------------------------------------------

def safe_div(n, d):
    if d == 0 or pd.isna(d):
        return 0.0
    return n / d


def format_currency(x) -> str:
    return f"₹{x:,.0f}"


def orders_to_csv(orders: list[Order]) -> str:
    """CSV export of `orders`, every field quoted."""
    df = pd.DataFrame(
        [
            (
                o.id,
                o.timestamp.strftime("%d/%m/%Y, %H:%M:%S"),
                o.customer.name,
                o.customer.mobile,
                len(o.items),
                o.payment_type,
                f"{o.total:.0f}",
            )
            for o in orders
        ],
        columns=EXPORT_COLUMNS,
    )
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def daily_totals(df: pd.DataFrame) -> pd.DataFrame:
    """Orders and revenue per calendar date, for trend strips."""
    if df.empty:
        return pd.DataFrame(columns=["DATE", "ORDERS", "REVENUE"])
    return (
        df.groupby("DATE", as_index=False)
        .agg(ORDERS=("ORDER_ID", "count"), REVENUE=("TOTAL", "sum"))
        .sort_values("DATE")
    )

