from datetime import datetime

from outletdeck.frames import ORDER_COLUMNS, format_currency, orders_to_csv, orders_to_frame, safe_div
from outletdeck.menu import MENU_BY_NAME
from outletdeck.models import Customer, OrderItem
from outletdeck.order_store import build_order
from outletdeck.receipts import render_receipt


def _order(discount=0.0):
    return build_order(
        Customer("Asha", "09000000001"),
        [OrderItem(MENU_BY_NAME["Kunafa Chocolate"], 2)],
        "Kondapur",
        "upi",
        discount_percent=discount,
        now=datetime(2025, 5, 3, 14, 5, 9),
    )


def test_csv_export_quotes_every_field():
    order = _order()
    lines = orders_to_csv([order]).splitlines()
    assert lines[0] == (
        '"Order ID","Date","Customer Name","Customer Mobile","Items","Payment Type","Total"'
    )
    assert lines[1] == f'"{order.id}","03/05/2025, 14:05:09","Asha","09000000001","1","upi","768"'


def test_csv_export_empty():
    assert orders_to_csv([]).strip().startswith('"Order ID"')


def test_orders_frame_columns(make_order):
    assert list(orders_to_frame([]).columns) == ORDER_COLUMNS
    df = orders_to_frame([make_order(datetime(2025, 5, 3, 23, 45), outlet=" Kondapur ")])
    assert df.loc[0, "STORE_KEY"] == "kondapur"
    assert df.loc[0, "HOUR"] == 23.75
    assert df.loc[0, "MONTH"] == "2025-05"


def test_helpers():
    assert safe_div(10, 0) == 0.0
    assert safe_div(10, 4) == 2.5
    assert format_currency(1234567.4) == "₹1,234,567"


def test_receipt_lines():
    text = render_receipt(_order())
    assert _order().id in text
    assert "Kunafa Kingdom" in text
    assert "2 x Kunafa Chocolate" in text
    assert "TOTAL" in text
    assert "Paid by UPI" in text
    assert "Discount" not in text


def test_receipt_shows_discount_code():
    text = render_receipt(_order(discount=15))
    assert "Discount (15%)" in text
