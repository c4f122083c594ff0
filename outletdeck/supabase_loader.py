###############################################################
#  SUPABASE ORDER REPOSITORY – PAGINATED READS, PLAIN WRITES
###############################################################

import logging
from datetime import datetime

import pandas as pd
from supabase import Client, create_client

from outletdeck.config import DeckConfig
from outletdeck.errors import PersistenceError
from outletdeck.menu import MENU_ITEMS
from outletdeck.models import ORDER_STATUSES, Customer, MenuItem, Order, OrderItem

logger = logging.getLogger(__name__)

ORDER_SELECT = """
    id,
    order_number,
    subtotal,
    discount_code,
    discount_amount,
    tax_rate,
    tax_amount,
    total,
    status,
    payment_type,
    outlet,
    created_at,
    customers!inner ( id, name, mobile )
"""

ITEM_SELECT = """
    order_id,
    quantity,
    unit_price,
    menu_items!inner ( id, name, price, category, description )
"""

# keeps the ?order_id=in.(...) filter well under URL length limits
ID_CHUNK = 200


# ------------------------------------------------------------
# 1. CONNECTION
# ------------------------------------------------------------

def get_supabase_client(cfg: DeckConfig) -> Client | None:
    """
    Create a Supabase client from config.

    Returns None when credentials are missing; the repository then runs in
    offline mode.
    """
    if cfg.offline:
        logger.warning("Supabase credentials missing - running in offline mode")
        return None
    return create_client(cfg.supabase_url, cfg.supabase_key)


# ------------------------------------------------------------
# 2. ROW -> MODEL CONVERSION
# ------------------------------------------------------------

def to_local(value, tz: str) -> datetime:
    """Parse a stored instant and express it as naive local time in `tz`."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert(tz).tz_localize(None).to_pydatetime()


def to_stored(value: datetime, tz: str) -> str:
    """ISO string with offset for a naive local time in `tz`."""
    return pd.Timestamp(value).tz_localize(tz).isoformat()


def _status(value) -> str:
    if not value:
        return "completed"
    if value not in ORDER_STATUSES:
        logger.warning("Unknown order status %r, treating as pending", value)
        return "pending"
    return value


def row_to_order(row: dict, item_rows: list[dict], tz: str) -> Order:
    cust = row.get("customers") or {}
    items = []
    for it in item_rows:
        mi = it.get("menu_items") or {}
        price = it.get("unit_price")
        items.append(
            OrderItem(
                item=MenuItem(
                    id=str(mi.get("id", "")),
                    name=mi.get("name", ""),
                    price=float(price if price is not None else mi.get("price", 0) or 0),
                    category=mi.get("category") or "Uncategorized",
                    description=mi.get("description") or "",
                ),
                quantity=int(it.get("quantity", 0) or 0),
            )
        )

    return Order(
        id=row["order_number"],
        db_id=str(row["id"]),
        customer=Customer(
            name=cust.get("name") or "Unknown Customer",
            mobile=cust.get("mobile") or "",
        ),
        items=tuple(items),
        subtotal=float(row.get("subtotal") or 0),
        discount_code=row.get("discount_code"),
        discount_amount=float(row.get("discount_amount") or 0),
        tax_rate=float(row.get("tax_rate") or 0),
        tax_amount=float(row.get("tax_amount") or 0),
        total=float(row.get("total") or 0),
        payment_type=row.get("payment_type") or "cash",
        timestamp=to_local(row["created_at"], tz),
        status=_status(row.get("status")),
        outlet=row.get("outlet"),
    )


# ------------------------------------------------------------
# 3. REPOSITORY
# ------------------------------------------------------------

class OrderRepository:
    """
    Orders in Supabase (customers / orders / order_items / menu_items).

    With no client every read returns nothing and every write is accepted
    locally, mirroring the app's offline mode.
    """

    def __init__(self, client: Client | None, page_size: int = 1000, tz: str = "Asia/Kolkata"):
        self.client = client
        self.page_size = page_size
        self.tz = tz

    @property
    def offline(self) -> bool:
        return self.client is None

    def _fetch_all(self, make_query) -> list[dict]:
        """
        Pull every row of a query with .range() pagination.

        Keeps requesting pages until one comes back short.
        """
        rows: list[dict] = []
        offset = 0
        while True:
            resp = make_query().range(offset, offset + self.page_size - 1).execute()
            data = resp.data or []
            rows.extend(data)
            if len(data) < self.page_size:
                break
            offset += self.page_size
        return rows

    def fetch_orders(self) -> list[Order]:
        """All orders, newest first. A failed read is logged and yields []."""
        if self.offline:
            return []

        try:
            order_rows = self._fetch_all(
                lambda: self.client.table("orders")
                .select(ORDER_SELECT)
                .order("created_at", desc=True)
            )

            items_by_order: dict[str, list[dict]] = {}
            ids = [r["id"] for r in order_rows]
            for start in range(0, len(ids), ID_CHUNK):
                chunk = ids[start:start + ID_CHUNK]
                item_rows = self._fetch_all(
                    lambda chunk=chunk: self.client.table("order_items")
                    .select(ITEM_SELECT)
                    .in_("order_id", chunk)
                )
                for it in item_rows:
                    items_by_order.setdefault(it["order_id"], []).append(it)
        except Exception as exc:
            logger.error("Error fetching orders from Supabase: %s", exc)
            return []

        orders = [row_to_order(r, items_by_order.get(r["id"], []), self.tz) for r in order_rows]
        logger.info("Fetched %d orders from Supabase", len(orders))
        return orders

    def fetch_menu_items(self) -> list[MenuItem]:
        """Active menu items by category; the built-in menu when offline or on error."""
        if self.offline:
            return list(MENU_ITEMS)

        try:
            resp = (
                self.client.table("menu_items")
                .select("*")
                .eq("is_active", True)
                .order("category")
                .execute()
            )
        except Exception as exc:
            logger.error("Error fetching menu items: %s", exc)
            return list(MENU_ITEMS)

        return [
            MenuItem(
                id=str(r["id"]),
                name=r["name"],
                price=float(r.get("price") or 0),
                category=r.get("category") or "Uncategorized",
                description=r.get("description") or "",
            )
            for r in resp.data or []
        ]

    def _customer_id(self, customer: Customer) -> str:
        resp = (
            self.client.table("customers")
            .select("id, name")
            .eq("mobile", customer.mobile)
            .maybe_single()
            .execute()
        )
        existing = resp.data if resp is not None else None

        if existing:
            if existing["name"] != customer.name:
                # the order still goes through under the existing customer
                try:
                    self.client.table("customers").update({"name": customer.name}).eq(
                        "id", existing["id"]
                    ).execute()
                    logger.info("Updated customer name for %s", existing["id"])
                except Exception as exc:
                    logger.error("Error updating customer name for %s: %s", existing["id"], exc)
            return existing["id"]

        created = (
            self.client.table("customers")
            .insert({"name": customer.name, "mobile": customer.mobile})
            .execute()
        )
        logger.info("Created customer %s", created.data[0]["id"])
        return created.data[0]["id"]

    def create_order(self, order: Order) -> str:
        """Persist `order` and its items; returns the database id."""
        if self.offline:
            return f"local-{int(datetime.now().timestamp() * 1000)}"

        try:
            customer_id = self._customer_id(order.customer)
            created = (
                self.client.table("orders")
                .insert({
                    "order_number": order.id,
                    "customer_id": customer_id,
                    "subtotal": order.subtotal,
                    "discount_code": order.discount_code,
                    "discount_amount": order.discount_amount,
                    "tax_rate": order.tax_rate,
                    "tax_amount": order.tax_amount,
                    "total": order.total,
                    "payment_type": order.payment_type,
                    "status": order.status,
                    "outlet": order.outlet,
                    "created_at": to_stored(order.timestamp, self.tz),
                })
                .execute()
            )
            db_id = created.data[0]["id"]

            self.client.table("order_items").insert([
                {
                    "order_id": db_id,
                    "menu_item_id": it.item.id,
                    "quantity": it.quantity,
                    "unit_price": it.item.price,
                    "total_price": it.line_total,
                }
                for it in order.items
            ]).execute()
        except Exception as exc:
            logger.error("Error creating order %s: %s", order.id, exc)
            raise PersistenceError(f"Failed to save order {order.id}") from exc

        logger.info("Created order %s (%d items)", order.id, len(order.items))
        return str(db_id)

    def delete_order(self, db_id: str) -> None:
        if self.offline:
            return
        try:
            self.client.table("orders").delete().eq("id", db_id).execute()
        except Exception as exc:
            logger.error("Error deleting order %s: %s", db_id, exc)
            raise PersistenceError(f"Failed to delete order {db_id}") from exc
        logger.info("Deleted order %s", db_id)

    def update_order_status(self, db_id: str, status: str) -> None:
        if self.offline:
            return
        try:
            self.client.table("orders").update({"status": status}).eq("id", db_id).execute()
        except Exception as exc:
            logger.error("Error updating order %s: %s", db_id, exc)
            raise PersistenceError(f"Failed to update order {db_id}") from exc
