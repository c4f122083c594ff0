"""Plain-text receipt rendering."""

from outletdeck.models import Order

WIDTH = 40


def _row(left: str, right: str) -> str:
    space = max(WIDTH - len(left) - len(right), 1)
    return f"{left}{' ' * space}{right}"


def _money(x: float) -> str:
    return f"₹{x:,.2f}"


def render_receipt(order: Order, shop_name: str = "Kunafa Kingdom") -> str:
    """Render `order` as a fixed-width receipt."""
    rule = "-" * WIDTH
    lines = [
        shop_name.center(WIDTH).rstrip(),
        (order.outlet or "").center(WIDTH).rstrip(),
        rule,
        f"Order: {order.id}",
        f"Date:  {order.timestamp:%d %b %Y %I:%M %p}",
        f"Name:  {order.customer.name}",
        f"Phone: {order.customer.mobile}",
        rule,
    ]
    for it in order.items:
        lines.append(_row(f"{it.quantity} x {it.item.name}", _money(it.line_total)))
    lines.append(rule)
    lines.append(_row("Subtotal", _money(order.subtotal)))
    if order.discount_amount > 0:
        label = f"Discount ({order.discount_code})" if order.discount_code else "Discount"
        lines.append(_row(label, "-" + _money(order.discount_amount)))
    lines.append(_row(f"Tax ({order.tax_rate * 100:g}%)", _money(order.tax_amount)))
    lines.append(_row("TOTAL", _money(order.total)))
    lines.append(rule)
    lines.append(f"Paid by {order.payment_type.upper()}")
    lines.append("Thank you!".center(WIDTH).rstrip())
    return "\n".join(lines)
