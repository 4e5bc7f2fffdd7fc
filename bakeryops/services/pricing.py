# bakeryops/services/pricing.py
"""
Point-of-sale cart and pricing.

The cart is a plain owned value: the caller keeps it between requests and
hands it to the pure pricing functions. Money is accumulated as Decimal and
only rounded to paise when the finalized order record is produced.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence

from ..db import Gateway
from ..errors import PersistenceError, ValidationError
from ..settings import settings
from ..utils.formatters import Number, quantize_money, to_decimal
from .receipt import render_receipt
from .workflow import OrderStatus

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("cash", "card", "upi")
ITEM_TABLES = {"product": "products", "combo": "combos", "addon": "cart_addons"}
ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ChosenAttribute:
    type: str
    name: str
    extra_cost: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, "extra_cost", to_decimal(self.extra_cost))
        if self.extra_cost < 0:
            raise ValidationError(f"extra cost for {self.name!r} must be >= 0")


@dataclass
class CartEntry:
    item: Dict[str, Any]
    quantity: int = 1
    chosen_attributes: List[ChosenAttribute] = field(default_factory=list)
    notes: Optional[str] = None

    @property
    def item_id(self) -> str:
        return self.item["id"]

    @property
    def item_type(self) -> str:
        return self.item.get("product_type") or self.item.get("type") or "product"

    @property
    def base_price(self) -> Decimal:
        return to_decimal(self.item.get("price") or 0)

    @property
    def unit_price(self) -> Decimal:
        return self.base_price + sum((a.extra_cost for a in self.chosen_attributes), ZERO)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Cart:
    """Ordered POS cart. Adding an identical line bumps its quantity."""

    def __init__(self, entries: Optional[Sequence[CartEntry]] = None):
        self.entries: List[CartEntry] = list(entries or [])

    def __iter__(self) -> Iterator[CartEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def add(
        self,
        item: Mapping[str, Any],
        quantity: int = 1,
        attributes: Optional[Sequence[ChosenAttribute]] = None,
        notes: Optional[str] = None,
    ) -> CartEntry:
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")
        attrs = list(attributes or [])
        for entry in self.entries:
            if entry.item_id == item["id"] and entry.chosen_attributes == attrs and entry.notes == notes:
                entry.quantity += quantity
                return entry
        entry = CartEntry(dict(item), quantity, attrs, notes)
        self.entries.append(entry)
        return entry

    def set_quantity(self, index: int, quantity: int) -> None:
        """Quantities of zero or less drop the line."""
        if quantity <= 0:
            self.remove(index)
        else:
            self.entries[index].quantity = quantity

    def remove(self, index: int) -> None:
        del self.entries[index]

    def clear(self) -> None:
        self.entries.clear()


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    delivery_fee: Decimal
    total_amount: Decimal

    def rounded(self) -> Dict[str, float]:
        """Paise-rounded money fields, the shape stored on an order."""
        subtotal = quantize_money(self.subtotal)
        discount = quantize_money(self.discount_amount)
        tax = quantize_money(self.tax_amount)
        fee = quantize_money(self.delivery_fee)
        # total is derived from the rounded parts so the stored record balances
        total = subtotal - discount + tax + fee
        return {
            "subtotal": float(subtotal),
            "discount_amount": float(discount),
            "tax_amount": float(tax),
            "delivery_fee": float(fee),
            "total_amount": float(total),
        }


def calculate_totals(
    entries: Sequence[CartEntry],
    discount_percent: Number = 0,
    tax_rate: Optional[Number] = None,
    delivery_fee: Number = 0,
) -> CartTotals:
    percent = to_decimal(discount_percent)
    if percent < 0 or percent > HUNDRED:
        raise ValidationError("discount percent must be between 0 and 100")
    rate = to_decimal(settings.tax_rate if tax_rate is None else tax_rate)
    fee = to_decimal(delivery_fee)
    if fee < 0:
        raise ValidationError("delivery fee must be >= 0")
    for entry in entries:
        if entry.quantity < 1:
            raise ValidationError(f"quantity for {entry.item.get('name')!r} must be at least 1")

    subtotal = sum((e.line_total for e in entries), ZERO)
    discount = subtotal * percent / HUNDRED
    taxable = subtotal - discount
    tax = taxable * rate
    return CartTotals(
        subtotal=subtotal,
        discount_percent=percent,
        discount_amount=discount,
        taxable_amount=taxable,
        tax_rate=rate,
        tax_amount=tax,
        delivery_fee=fee,
        total_amount=taxable + tax + fee,
    )


@dataclass
class CustomerInfo:
    name: str = ""
    phone: str = ""
    address: str = ""


def line_item_record(entry: CartEntry) -> Dict[str, Any]:
    """Embedded order line for one cart entry."""
    record: Dict[str, Any] = {
        "id": entry.item_id,
        "type": entry.item_type,
        "name": entry.item.get("name"),
        "image_url": entry.item.get("image_url"),
        "quantity": entry.quantity,
        "base_price": float(quantize_money(entry.base_price)),
        "total_price": float(quantize_money(entry.line_total)),
    }
    if entry.chosen_attributes:
        record["variations"] = {
            a.type: {"name": a.name, "price_adjustment": float(quantize_money(a.extra_cost))}
            for a in entry.chosen_attributes
        }
    if entry.notes:
        record["special_instructions"] = entry.notes
    combo_items = entry.item.get("combo_items") or entry.item.get("products")
    if entry.item_type == "combo" and isinstance(combo_items, list):
        record["combo_items"] = [
            {
                "name": c.get("name"),
                "quantity": c.get("quantity", 1),
                "sub_total": c.get("sub_total", c.get("price")),
            }
            for c in combo_items
            if isinstance(c, Mapping)
        ]
    return record


def build_pos_order(
    cart: Cart,
    totals: CartTotals,
    customer: Optional[CustomerInfo] = None,
    payment_method: str = "cash",
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Finalized POS order: created already delivered, paid, with no delivery fee."""
    now = now or datetime.now(timezone.utc)
    customer = customer or CustomerInfo()
    stamp = now.isoformat()
    return {
        "order_number": f"POS{int(now.timestamp() * 1000)}",
        "contact_name": customer.name or "POS Customer",
        "contact_phone": customer.phone or "",
        "delivery_address": customer.address or None,
        "items": [line_item_record(e) for e in cart],
        **totals.rounded(),
        "discount_percent": float(totals.discount_percent),
        "status": OrderStatus.DELIVERED.value,
        "payment_method": payment_method,
        "payment_status": "completed",
        "pos": True,
        "delivery_partner_id": None,
        "delivery_notes": None,
        "special_instructions": None,
        "estimated_delivery_time": None,
        "created_at": stamp,
        "updated_at": stamp,
    }


class PosCheckout(NamedTuple):
    order: Dict[str, Any]
    receipt: str


async def submit_pos_order(
    gateway: Gateway,
    cart: Cart,
    discount_percent: Number = 0,
    payment_method: str = "cash",
    customer: Optional[CustomerInfo] = None,
    amount_received: Optional[Number] = None,
    now: Optional[datetime] = None,
) -> PosCheckout:
    """
    Price, persist and print a POS sale.

    The cart is cleared only after the store accepted the order. On a
    persistence failure the cart is left as it was and no receipt exists,
    so the operator can simply submit again.
    """
    if not len(cart):
        raise ValidationError("cart is empty")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"unknown payment method {payment_method!r}")

    totals = calculate_totals(list(cart), discount_percent)
    if totals.total_amount <= 0:
        raise ValidationError("total amount must be greater than 0")
    if amount_received is not None and payment_method == "cash":
        if to_decimal(amount_received) < quantize_money(totals.total_amount):
            raise ValidationError("amount received is less than the total")

    order = build_pos_order(cart, totals, customer, payment_method, now)
    try:
        saved = await gateway.create_order(order)
    except PersistenceError:
        logger.error("POS order %s was not saved; cart kept for retry", order["order_number"], exc_info=True)
        raise

    receipt = render_receipt(
        saved,
        amount_received=amount_received if payment_method == "cash" else None,
    )
    cart.clear()
    logger.info("POS order %s saved (%s)", saved["order_number"], saved["total_amount"])
    return PosCheckout(saved, receipt)


async def load_cart(gateway: Gateway, lines: Sequence[Mapping[str, Any]]) -> Cart:
    """
    Resolve client cart lines against the catalog so prices come from the store.

    Each line: {id, type?, quantity, attributes?: [{type, name}], notes?}
    """
    cart = Cart()
    for line in lines:
        kind = line.get("type") or "product"
        table = ITEM_TABLES.get(kind)
        if table is None:
            raise ValidationError(f"unknown item type {kind!r}")
        row = await gateway.get(table, line["id"])
        if not row or not _is_active(kind, row):
            raise ValidationError(f"item unavailable: {line['id']}")
        item = {**row, "price": _catalog_price(kind, row), "product_type": row.get("product_type") or kind}
        if item["price"] is None:
            raise ValidationError(f"item has no price: {row.get('name') or line['id']}")
        attrs = [_catalog_attribute(row, a) for a in line.get("attributes") or []]
        cart.add(item, int(line.get("quantity", 1)), attrs, line.get("notes"))
    return cart


def _catalog_attribute(row: Mapping[str, Any], chosen: Mapping[str, Any]) -> ChosenAttribute:
    """
    Look up a chosen {type, name} in the item's own `attributes` groups:
    [{"type": "egg", "options": [{"name": "Eggless", "extra_cost": 50}]}].
    The surcharge always comes from the catalog.
    """
    kind, name = chosen.get("type"), chosen.get("name")
    for group in row.get("attributes") or []:
        if not isinstance(group, Mapping) or group.get("type") != kind:
            continue
        for option in group.get("options") or []:
            if isinstance(option, Mapping) and option.get("name") == name:
                cost = option.get("extra_cost", option.get("price_adjustment", 0))
                return ChosenAttribute(kind, name, cost or 0)
    raise ValidationError(f"unknown option {kind}: {name} for {row.get('name') or row.get('id')}")


def _catalog_price(kind: str, row: Mapping[str, Any]):
    if kind == "combo":
        return row.get("discounted_price")
    return row.get("price")


def _is_active(kind: str, row: Mapping[str, Any]) -> bool:
    if kind == "addon":
        return row.get("status") is not False
    return row.get("is_active") is not False


def new_order_number(prefix: str = "SST") -> str:
    return f"{prefix}{int(time.time() * 1000)}"
