# duckdb_loader.py – local cache of historical orders imported from CSV
import logging
import os
import tempfile

import duckdb
import pandas as pd

from outletdeck.config import DEFAULT_DUCKDB_FILE, DEFAULT_TIMEZONE, outlet_code
from outletdeck.menu import MENU_BY_NAME
from outletdeck.models import PAYMENT_TYPES, Customer, MenuItem, Order, OrderItem

logger = logging.getLogger(__name__)

DB_FILE = DEFAULT_DUCKDB_FILE
TABLE_NAME = "historical_orders"

# CSV columns by position: name, mobile, outlet, date-time, items, total
CSV_COLUMNS = ["CUSTOMER_NAME", "MOBILE", "OUTLET", "DATETIME", "ITEMS", "TOTAL"]

CSV_TAX_RATE = 0.1


def _connect(db_file: str = DB_FILE):
    return duckdb.connect(database=db_file, read_only=False)


def table_exists(table: str = TABLE_NAME, db_file: str = DB_FILE) -> bool:
    con = _connect(db_file)
    try:
        res = con.execute(
            "SELECT table_name FROM information_schema.tables WHERE table_name = ?",
            [table]
        ).fetchall()
        return len(res) > 0
    finally:
        con.close()


def ingest_from_path(path: str, table: str = TABLE_NAME, db_file: str = DB_FILE, overwrite: bool = True):
    """
    Load an orders CSV into `table`.

    Every column is read as text so mobile numbers keep leading zeros;
    typing happens in frame_to_orders.
    """
    con = _connect(db_file)
    try:
        if overwrite:
            con.execute(f"DROP TABLE IF EXISTS {table}")
        safe_path = path.replace("'", "''")
        con.execute(
            f"CREATE TABLE IF NOT EXISTS {table} AS "
            f"SELECT * FROM read_csv_auto('{safe_path}', header=true, all_varchar=true)"
        )
        count = con.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        con.close()
    logger.info("Ingested %d CSV rows into %s", count, table)


def ingest_from_bytes(contents: bytes, table: str = TABLE_NAME, db_file: str = DB_FILE, overwrite: bool = True):
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".csv")
    try:
        tmp.write(contents)
        tmp.flush()
        tmp.close()
        ingest_from_path(tmp.name, table=table, db_file=db_file, overwrite=overwrite)
    finally:
        os.unlink(tmp.name)


def run_query(sql: str, params: list | None = None, db_file: str = DB_FILE) -> pd.DataFrame:
    con = _connect(db_file)
    try:
        if params:
            res = con.execute(sql, params).fetchdf()
        else:
            res = con.execute(sql).fetchdf()
        return res
    finally:
        con.close()


def read_table(table: str = TABLE_NAME, db_file: str = DB_FILE) -> pd.DataFrame:
    if not table_exists(table, db_file=db_file):
        return pd.DataFrame(columns=CSV_COLUMNS)
    df = run_query(f"SELECT * FROM {table}", db_file=db_file)
    df = df.iloc[:, : len(CSV_COLUMNS)]
    df.columns = CSV_COLUMNS[: len(df.columns)]
    return df


# ------------------------------------------------------------
# ROWS -> ORDERS
# ------------------------------------------------------------

def _text(value) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def payment_type_for(name: str) -> str:
    """Stable pseudo payment type for imported rows, derived from the name."""
    return PAYMENT_TYPES[sum(ord(ch) for ch in name) % len(PAYMENT_TYPES)]


def frame_to_orders(df: pd.DataFrame, menu: dict[str, MenuItem] | None = None,
                    tz: str = DEFAULT_TIMEZONE) -> list[Order]:
    """
    Convert imported CSV rows to orders.

    Items are priced from the menu (one unit per listed item); unknown items
    are dropped and rows left with no known item, or missing a required
    field, are skipped. Totals are recomputed with 10% tax. Timestamps with
    an offset are converted to local time in `tz`; naive ones are taken as
    already local.
    """
    menu = menu if menu is not None else MENU_BY_NAME
    orders: list[Order] = []

    for pos, row in enumerate(df.itertuples(index=False), start=1):
        name = _text(row.CUSTOMER_NAME)
        mobile = _text(row.MOBILE)
        outlet = _text(row.OUTLET)
        items_str = _text(row.ITEMS)
        ts = pd.to_datetime(_text(row.DATETIME) or None, errors="coerce")

        if not (name and mobile and outlet and items_str) or pd.isna(ts):
            logger.warning("Skipping CSV row %d: missing required field", pos)
            continue

        items = []
        for item_name in (s.strip() for s in items_str.split(",")):
            item = menu.get(item_name)
            if item is None:
                logger.warning("Unknown menu item in CSV row %d: %s", pos, item_name)
                continue
            items.append(OrderItem(item=item, quantity=1))
        if not items:
            continue

        if ts.tzinfo is not None:
            ts = ts.tz_convert(tz).tz_localize(None)
        timestamp = ts.to_pydatetime()
        subtotal = sum(it.line_total for it in items)
        tax_amount = subtotal * CSV_TAX_RATE
        orders.append(
            Order(
                id=f"{outlet_code(outlet)}-{int(timestamp.timestamp() * 1000)}-{pos}",
                db_id=f"csv-order-{pos}",
                customer=Customer(name=name, mobile=mobile),
                items=tuple(items),
                subtotal=subtotal,
                discount_amount=0.0,
                tax_rate=CSV_TAX_RATE,
                tax_amount=tax_amount,
                total=subtotal + tax_amount,
                payment_type=payment_type_for(name),
                timestamp=timestamp,
                status="completed",
                outlet=outlet,
            )
        )

    logger.info("Loaded %d orders from %d CSV rows", len(orders), len(df))
    return orders


def load_orders(table: str = TABLE_NAME, db_file: str = DB_FILE, tz: str = DEFAULT_TIMEZONE) -> list[Order]:
    return frame_to_orders(read_table(table, db_file=db_file), tz=tz)
