from outletdeck.frames import orders_to_frame
from outletdeck.models import CustomerSummary, Order


def rollup_customers(filtered_orders: list[Order]) -> list[CustomerSummary]:
    """
    One summary per mobile number, most recent customer first.

    The name is taken from the customer's first order in the input; orders
    without a mobile are grouped under "".
    """
    df = orders_to_frame(filtered_orders)
    if df.empty:
        return []

    # pandas unique keeps first-appearance order
    outlets = df.groupby("MOBILE", sort=False)["OUTLET"].unique().rename("OUTLETS")

    grouped = (
        df.groupby("MOBILE", sort=False)
        .agg(
            NAME=("CUSTOMER_NAME", "first"),
            ORDERS=("ORDER_ID", "count"),
            SPENT=("TOTAL", "sum"),
            LAST=("TIMESTAMP", "max"),
        )
        .join(outlets)
        .reset_index()
        .sort_values("LAST", ascending=False, kind="stable")
    )

    return [
        CustomerSummary(
            name=row.NAME,
            mobile=row.MOBILE,
            total_orders=int(row.ORDERS),
            total_spent=float(row.SPENT),
            last_ordered=row.LAST.to_pydatetime(),
            outlets=[o for o in row.OUTLETS if o],
        )
        for row in grouped.itertuples(index=False)
    ]


def search_customers(customers: list[CustomerSummary], term: str) -> list[CustomerSummary]:
    """Name (case-insensitive) or raw mobile substring match."""
    if not term:
        return customers
    needle = term.lower()
    return [c for c in customers if needle in c.name.lower() or term in c.mobile]
