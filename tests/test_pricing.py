"""Tests for POS cart pricing and submission."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from bakeryops.errors import PersistenceError, ValidationError
from bakeryops.services.pricing import (
    Cart,
    ChosenAttribute,
    CustomerInfo,
    calculate_totals,
    load_cart,
    submit_pos_order,
)
from tests.conftest import SEED, FlakyGateway, run

TRUFFLE = {"id": "p-truffle", "name": "Truffle Cake", "price": 450.0}
PUFF = {"id": "p-puff", "name": "Veg Puff", "price": 25.5}
FIXED_NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def _cart_of_1000() -> Cart:
    cart = Cart()
    cart.add({"id": "p-x", "name": "Celebration Cake", "price": 500}, quantity=2)
    return cart


# ---------- Cart ----------

def test_adding_same_line_bumps_quantity():
    cart = Cart()
    cart.add(PUFF)
    cart.add(PUFF, quantity=2)
    assert len(cart) == 1
    assert cart.entries[0].quantity == 3


def test_different_attributes_make_separate_lines():
    cart = Cart()
    cart.add(TRUFFLE)
    cart.add(TRUFFLE, attributes=[ChosenAttribute("egg", "Eggless", 50)])
    assert len(cart) == 2


def test_set_quantity_zero_removes_line():
    cart = Cart()
    cart.add(PUFF)
    cart.add(TRUFFLE)
    cart.set_quantity(0, 0)
    assert [e.item_id for e in cart] == ["p-truffle"]


def test_negative_extra_cost_rejected():
    with pytest.raises(ValidationError):
        ChosenAttribute("egg", "Eggless", -5)


# ---------- Totals ----------

def test_subtotal_includes_attribute_costs_per_unit():
    cart = Cart()
    cart.add(TRUFFLE, quantity=2, attributes=[ChosenAttribute("egg", "Eggless", 50)])
    cart.add(PUFF, quantity=3)
    totals = calculate_totals(list(cart), 0, tax_rate="0.18")
    # (450 + 50) * 2 + 25.5 * 3
    assert totals.subtotal == Decimal("1076.5")


def test_tax_on_round_thousand():
    totals = calculate_totals(list(_cart_of_1000()), 0, tax_rate="0.18")
    rounded = totals.rounded()
    assert rounded["subtotal"] == 1000.00
    assert rounded["tax_amount"] == 180.00
    assert rounded["total_amount"] == 1180.00
    assert rounded["delivery_fee"] == 0.0


def test_discount_applies_before_tax():
    totals = calculate_totals(list(_cart_of_1000()), 10, tax_rate="0.18")
    assert totals.discount_amount == Decimal("100")
    assert totals.taxable_amount == Decimal("900")
    assert totals.tax_amount == Decimal("162.00")
    assert totals.total_amount == Decimal("1062.00")


def test_total_balances_with_delivery_fee():
    cart = Cart()
    cart.add(PUFF, quantity=7)
    totals = calculate_totals(list(cart), 12.5, tax_rate="0.18", delivery_fee=40)
    r = totals.rounded()
    assert round(r["subtotal"] - r["discount_amount"] + r["tax_amount"] + r["delivery_fee"], 2) == r["total_amount"]


def test_no_binary_float_drift():
    cart = Cart()
    for i in range(3):
        cart.add({"id": f"t{i}", "name": "Toffee", "price": 0.1})
    assert calculate_totals(list(cart), 0, tax_rate=0).subtotal == Decimal("0.3")


@pytest.mark.parametrize("pct", [-1, 100.01, 250])
def test_discount_outside_range_rejected(pct):
    with pytest.raises(ValidationError):
        calculate_totals(list(_cart_of_1000()), pct)


def test_full_discount_allowed():
    totals = calculate_totals(list(_cart_of_1000()), 100, tax_rate="0.18")
    assert totals.total_amount == 0


# ---------- Submission ----------

def test_submit_persists_delivered_pos_order_and_clears_cart(gateway):
    cart = _cart_of_1000()
    result = run(submit_pos_order(
        gateway, cart, discount_percent=0, payment_method="cash",
        customer=CustomerInfo(name="Meera", phone="9811111111"),
        amount_received=1200, now=FIXED_NOW,
    ))
    order = result.order
    assert order["status"] == "delivered"
    assert order["pos"] is True
    assert order["payment_status"] == "completed"
    assert order["order_number"] == f"POS{int(FIXED_NOW.timestamp() * 1000)}"
    assert order["total_amount"] == 1180.0
    assert order["items"][0]["total_price"] == 1000.0
    assert len(cart) == 0

    stored = run(gateway.get("orders", order["id"]))
    assert stored["contact_name"] == "Meera"
    assert "TOTAL:" in result.receipt and "₹1,180" in result.receipt
    assert "Change: ₹20" in result.receipt


def test_submit_failure_keeps_cart_and_prints_nothing():
    gw = FlakyGateway(SEED, fail={"insert"})
    cart = _cart_of_1000()
    with pytest.raises(PersistenceError):
        run(submit_pos_order(gw, cart, payment_method="card"))
    assert len(cart) == 1
    assert cart.entries[0].quantity == 2
    assert run(gw.list("orders")) == []


def test_submit_empty_cart_rejected(gateway):
    with pytest.raises(ValidationError):
        run(submit_pos_order(gateway, Cart()))


def test_submit_unknown_payment_method_rejected(gateway):
    with pytest.raises(ValidationError):
        run(submit_pos_order(gateway, _cart_of_1000(), payment_method="cheque"))


def test_submit_zero_total_rejected(gateway):
    cart = _cart_of_1000()
    with pytest.raises(ValidationError):
        run(submit_pos_order(gateway, cart, discount_percent=100))
    assert len(cart) == 1


# ---------- Catalog lookup ----------

def test_load_cart_uses_catalog_prices(gateway):
    cart = run(load_cart(gateway, [
        {"id": "p-truffle", "quantity": 1, "price": 1},  # client price is ignored
        {"id": "c-tea", "type": "combo", "quantity": 2},
        {"id": "a-candle", "type": "addon", "quantity": 1},
    ]))
    prices = [e.base_price for e in cart]
    assert prices == [Decimal("450.0"), Decimal("150.0"), Decimal("20.0")]
    assert cart.entries[1].item_type == "combo"


def test_load_cart_rejects_inactive_product(gateway):
    with pytest.raises(ValidationError):
        run(load_cart(gateway, [{"id": "p-old", "quantity": 1}]))


def test_load_cart_takes_attribute_cost_from_catalog(gateway):
    cart = run(load_cart(gateway, [
        {"id": "p-truffle", "quantity": 1,
         "attributes": [{"type": "size", "name": "1kg", "extra_cost": 99999}]},
    ]))
    assert cart.entries[0].chosen_attributes[0].extra_cost == Decimal("400")
    assert calculate_totals(list(cart), 0, tax_rate=0).subtotal == Decimal("850.0")


@pytest.mark.parametrize("attr", [
    {"type": "size", "name": "5kg"},        # option not offered
    {"type": "flavour", "name": "Mango"},   # group not offered
])
def test_load_cart_rejects_unknown_attribute(gateway, attr):
    with pytest.raises(ValidationError):
        run(load_cart(gateway, [{"id": "p-truffle", "attributes": [attr]}]))


def test_load_cart_rejects_attributes_on_plain_items(gateway):
    with pytest.raises(ValidationError):
        run(load_cart(gateway, [{"id": "a-candle", "type": "addon", "attributes": [{"type": "egg", "name": "Eggless"}]}]))
