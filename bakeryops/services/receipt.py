# bakeryops/services/receipt.py
"""Printable receipts. Pure functions of the order record: same order, same bytes."""
from __future__ import annotations

import html
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from ..settings import settings
from ..utils.formatters import Number, format_currency, format_date, format_time, to_decimal

WIDTH = 31
RULE = "=" * WIDTH
DASH = "-" * WIDTH


def _row(label: str, value: str) -> str:
    gap = max(1, WIDTH - len(label) - len(value))
    return f"{label}{' ' * gap}{value}"


def _address_text(address: Any) -> Optional[str]:
    if not address:
        return None
    if isinstance(address, str):
        return address
    if isinstance(address, Mapping):
        return address.get("formatted") or "Delivery Address"
    return None


def _item_lines(item: Mapping[str, Any]) -> List[str]:
    qty = int(item.get("quantity") or 0)
    base = to_decimal(item.get("base_price") or 0)
    variations: Dict[str, Any] = item.get("variations") or {}
    extras = sum((to_decimal(v.get("price_adjustment") or 0) for v in variations.values()), Decimal("0"))
    unit = base + extras
    total = item.get("total_price")
    line_total = to_decimal(total) if total is not None else unit * qty

    lines = [str(item.get("name") or "Item")]
    for kind, v in variations.items():
        adj = to_decimal(v.get("price_adjustment") or 0)
        suffix = f" (+{format_currency(adj)})" if adj else ""
        lines.append(f"  {kind}: {v.get('name')}{suffix}")
    for sub in item.get("combo_items") or []:
        lines.append(f"  - {sub.get('name')} x{sub.get('quantity', 1)}")
    if item.get("special_instructions"):
        lines.append(f"  Note: {item['special_instructions']}")
    lines.append(_row(f"  {qty} x {format_currency(unit)}", format_currency(line_total)))
    return lines


def render_receipt(
    order: Mapping[str, Any],
    amount_received: Optional[Number] = None,
    store_name: Optional[str] = None,
    show_status: bool = False,
) -> str:
    """Fixed-width text receipt for a thermal printer."""
    name = store_name or settings.receipt_store_name
    created = order.get("created_at")
    out: List[str] = [RULE, name.center(WIDTH).rstrip(), RULE]
    out.append(f"Order #: {order.get('order_number') or str(order.get('id', ''))[-8:]}")
    if created:
        out.append(f"Date: {format_date(created)}")
        out.append(f"Time: {format_time(created)}")
    if show_status and order.get("status"):
        out.append(f"Status: {str(order['status']).upper()}")
    out.append(DASH)

    for item in order.get("items") or []:
        out.extend(_item_lines(item))
    out.append(DASH)

    out.append(_row("Subtotal:", format_currency(order.get("subtotal") or 0)))
    discount = to_decimal(order.get("discount_amount") or 0)
    if discount:
        pct = order.get("discount_percent")
        label = f"Discount ({to_decimal(pct).normalize():f}%):" if pct else "Discount:"
        out.append(_row(label, f"-{format_currency(discount)}"))
    out.append(_row("Tax:", format_currency(order.get("tax_amount") or 0)))
    fee = to_decimal(order.get("delivery_fee") or 0)
    if fee:
        out.append(_row("Delivery:", format_currency(fee)))
    out.append(DASH)
    total = to_decimal(order.get("total_amount") or 0)
    out.append(_row("TOTAL:", format_currency(total)))
    out.append(DASH)

    method = order.get("payment_method")
    if method:
        out.append(f"Payment: {str(method).upper()}")
    if amount_received is not None and method == "cash":
        received = to_decimal(amount_received)
        out.append(f"Received: {format_currency(received)}")
        out.append(f"Change: {format_currency(received - total)}")
    out.append(DASH)

    out.append(f"Customer: {order.get('contact_name') or 'Walk-in Customer'}")
    if order.get("contact_phone"):
        out.append(f"Phone: {order['contact_phone']}")
    address = _address_text(order.get("delivery_address"))
    if address:
        out.append(f"Address: {address}")
    partner = order.get("delivery_partners")
    if partner:
        out.append(DASH)
        out.append("Delivery Partner:")
        out.append(str(partner.get("name") or ""))
        if partner.get("phone"):
            out.append(f"Ph: {partner['phone']}")
        if partner.get("vehicle_type"):
            out.append(str(partner["vehicle_type"]))
    out.append(DASH)
    out.append("Thank you for your visit!")
    out.append("Visit us again!")
    out.append(RULE)
    return "\n".join(out) + "\n"


def render_receipt_html(order: Mapping[str, Any], **kwargs: Any) -> str:
    """The text receipt wrapped in a printable 300px monospace page."""
    body = html.escape(render_receipt(order, **kwargs))
    return (
        "<html>\n"
        "  <head>\n"
        "    <title>Receipt</title>\n"
        "    <style>\n"
        "      body { font-family: monospace; width: 300px; margin: 0; padding: 10px; }\n"
        "      pre { white-space: pre-wrap; font-size: 12px; }\n"
        "    </style>\n"
        "  </head>\n"
        "  <body>\n"
        f"    <pre>{body}</pre>\n"
        "  </body>\n"
        "</html>\n"
    )
