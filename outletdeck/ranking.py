import numpy as np
import pandas as pd

from outletdeck.frames import line_items_to_frame
from outletdeck.models import Order, RankedItem, TopSellers


def item_stats(filtered_orders: list[Order]) -> pd.DataFrame:
    """
    Units and revenue per product id, most units first.

    Products selling the same number of units keep the order in which they
    first appeared.
    """
    items = line_items_to_frame(filtered_orders)
    if items.empty:
        return pd.DataFrame(columns=["ITEM_ID", "ITEM_NAME", "UNITS", "REVENUE", "PCT"])

    stats = (
        items.groupby("ITEM_ID", sort=False, as_index=False)
        .agg(ITEM_NAME=("ITEM_NAME", "first"), UNITS=("QTY", "sum"), REVENUE=("REVENUE", "sum"))
        .sort_values("UNITS", ascending=False, kind="stable")
        .reset_index(drop=True)
    )
    total_units = stats["UNITS"].sum()
    stats["PCT"] = np.where(stats["UNITS"] > 0, stats["UNITS"] / total_units * 100, 0.0)
    return stats


def _ranked(row) -> RankedItem:
    return RankedItem(
        id=str(row.ITEM_ID),
        name=str(row.ITEM_NAME),
        units_sold=int(row.UNITS),
        revenue=float(row.REVENUE),
        percentage=float(row.PCT),
    )


def compute_top_sellers(filtered_orders: list[Order], top_n: int = 3) -> TopSellers:
    stats = item_stats(filtered_orders)
    top = [_ranked(row) for row in stats.head(top_n).itertuples(index=False)]
    others = float(stats["PCT"].iloc[top_n:].sum()) if len(stats) > top_n else 0.0
    return TopSellers(
        top=top,
        others_percentage=others,
        total_units_sold=int(stats["UNITS"].sum()) if not stats.empty else 0,
    )


def compute_underperformer(filtered_orders: list[Order], top_sellers: TopSellers) -> RankedItem | None:
    """
    Least-sold product outside the top sellers.

    Exclusion goes by display name, so a product sharing a name with a top
    seller is excluded too.
    """
    stats = item_stats(filtered_orders)
    top_names = {item.name for item in top_sellers.top}
    rest = stats[~stats["ITEM_NAME"].isin(top_names)]
    if rest.empty:
        return None

    # equal unit counts stay in first-appearance order
    rest = rest.sort_values("UNITS", ascending=True, kind="stable")
    return _ranked(next(rest.itertuples(index=False)))
