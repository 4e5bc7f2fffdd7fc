"""Tests for currency formatting and receipt rendering."""
from __future__ import annotations

from decimal import Decimal

import pytest

from bakeryops.services.receipt import WIDTH, render_receipt, render_receipt_html
from bakeryops.utils.formatters import format_currency, format_date, format_time, group_indian


# ---------- format_currency ----------

@pytest.mark.parametrize("amount,expected", [
    (1180, "₹1,180"),
    (1180.5, "₹1,180.50"),
    (0, "₹0"),
    (999, "₹999"),
    (100000, "₹1,00,000"),
    (12345678.9, "₹1,23,45,678.90"),
    (Decimal("162.005"), "₹162.01"),
    (1180.001, "₹1,180"),
    (-50, "-₹50"),
])
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


def test_group_indian_short_numbers_untouched():
    assert group_indian("12") == "12"
    assert group_indian("1234") == "1,234"


def test_dates_render_in_store_timezone():
    # 10:00 UTC is 15:30 in Kolkata
    assert format_date("2026-10-19T10:00:00+00:00") == "19/10/2026"
    assert format_time("2026-10-19T10:00:00Z") == "03:30 PM"


# ---------- receipts ----------

ORDER = {
    "id": "ord_0000abcd",
    "order_number": "POS1792404000000",
    "created_at": "2026-10-19T10:00:00+00:00",
    "contact_name": "Meera",
    "contact_phone": "9811111111",
    "items": [
        {
            "id": "p-truffle", "type": "product", "name": "Truffle Cake", "quantity": 2,
            "base_price": 450.0, "total_price": 1000.0,
            "variations": {"egg": {"name": "Eggless", "price_adjustment": 50.0}},
            "special_instructions": "Happy Birthday Asha",
        },
        {
            "id": "c-tea", "type": "combo", "name": "Tea Time Combo", "quantity": 1,
            "base_price": 150.0, "total_price": 150.0,
            "combo_items": [{"name": "Veg Puff", "quantity": 2, "sub_total": None}],
        },
    ],
    "subtotal": 1150.0,
    "discount_amount": 115.0,
    "discount_percent": 10.0,
    "tax_amount": 186.3,
    "delivery_fee": 0.0,
    "total_amount": 1221.3,
    "payment_method": "upi",
    "status": "delivered",
}


def test_receipt_is_reproducible():
    assert render_receipt(ORDER) == render_receipt(dict(ORDER))


def test_receipt_contents():
    text = render_receipt(ORDER, store_name="SST BAKERY")
    assert "SST BAKERY" in text
    assert "Order #: POS1792404000000" in text
    assert "Date: 19/10/2026" in text
    assert "Time: 03:30 PM" in text
    assert "egg: Eggless (+₹50)" in text
    assert "Note: Happy Birthday Asha" in text
    assert "- Veg Puff x2" in text
    assert "Discount (10%):" in text
    assert "Payment: UPI" in text
    assert "Received:" not in text  # not a cash sale


def test_receipt_rows_fit_paper_width():
    for line in render_receipt(ORDER).splitlines():
        if "₹" in line and not line.startswith("  egg"):
            assert len(line) <= WIDTH


def test_receipt_amount_rows_right_aligned():
    lines = render_receipt(ORDER).splitlines()
    total = next(l for l in lines if l.startswith("TOTAL:"))
    assert total.endswith("₹1,221.30")
    assert len(total) == WIDTH


def test_cash_receipt_shows_change():
    order = {**ORDER, "payment_method": "cash"}
    text = render_receipt(order, amount_received=1300)
    assert "Received: ₹1,300" in text
    assert "Change: ₹78.70" in text


def test_walk_in_when_no_contact_name():
    order = {**ORDER, "contact_name": "", "contact_phone": ""}
    text = render_receipt(order)
    assert "Customer: Walk-in Customer" in text
    assert "Phone:" not in text


def test_html_receipt_escapes_and_wraps():
    order = {**ORDER, "contact_name": "<b>Meera</b>"}
    page = render_receipt_html(order)
    assert page.startswith("<html>")
    assert "&lt;b&gt;Meera&lt;/b&gt;" in page
    assert "<pre>" in page


def test_invoice_shows_status_and_partner():
    order = {**ORDER, "status": "out_for_delivery",
             "delivery_partners": {"name": "Ravi", "phone": "9000000001", "vehicle_type": "Bike"}}
    text = render_receipt(order, show_status=True)
    assert "Status: OUT_FOR_DELIVERY" in text
    assert "Delivery Partner:" in text and "Ph: 9000000001" in text
