# bakeryops/services/orders.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

from ..db import Gateway, now_iso
from ..errors import NotFoundError, PersistenceError, ValidationError
from ..settings import settings
from ..utils.formatters import to_decimal
from .pricing import new_order_number
from .workflow import OrderStatus, parse_status

if TYPE_CHECKING:
    from .notifications import PendingOrderPoller

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("id", "full_name", "phone", "email", "avatar_url")
PARTNER_FIELDS = ("id", "name", "phone", "vehicle_type", "is_available")
MONEY_TOLERANCE = Decimal("0.01")
MONEY_FIELDS = frozenset({"subtotal", "discount_amount", "tax_amount", "delivery_fee", "total_amount"})


def _pick(row: Optional[Mapping[str, Any]], fields) -> Optional[Dict[str, Any]]:
    if not row:
        return None
    return {f: row.get(f) for f in fields}


async def _with_relations(gateway: Gateway, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Attach `profiles` and `delivery_partners` summaries to each order."""
    profiles = await gateway.get_many("profiles", (o.get("user_id") for o in orders))
    partners = await gateway.get_many("delivery_partners", (o.get("delivery_partner_id") for o in orders))
    return [
        {
            **o,
            "profiles": _pick(profiles.get(o.get("user_id") or ""), PROFILE_FIELDS),
            "delivery_partners": _pick(partners.get(o.get("delivery_partner_id") or ""), PARTNER_FIELDS),
        }
        for o in orders
    ]


async def list_orders(gateway: Gateway, status: Optional[str] = None) -> List[Dict[str, Any]]:
    """Newest first; `status=None` or `"all"` returns every order."""
    if status and status != "all":
        status = parse_status(status).value
    else:
        status = None
    orders = await gateway.list_orders(status=status)
    return await _with_relations(gateway, orders)


async def get_order(gateway: Gateway, order_id: str) -> Dict[str, Any]:
    order = await gateway.get("orders", order_id)
    if order is None:
        raise NotFoundError("orders", order_id)
    return (await _with_relations(gateway, [order]))[0]


async def get_or_create_guest_user(gateway: Gateway) -> str:
    existing = await gateway.list("profiles", {"email": settings.guest_email})
    if existing:
        return existing[0]["id"]
    guest = await gateway.insert(
        "profiles",
        {"email": settings.guest_email, "full_name": "Guest User", "phone": None},
    )
    logger.info("Created guest profile %s", guest["id"])
    return guest["id"]


def check_totals(order: Mapping[str, Any]) -> None:
    """total = subtotal - discount + tax + delivery fee, to the paisa."""
    if order.get("subtotal") is None:
        return
    expected = (
        to_decimal(order.get("subtotal") or 0)
        - to_decimal(order.get("discount_amount") or 0)
        + to_decimal(order.get("tax_amount") or 0)
        + to_decimal(order.get("delivery_fee") or 0)
    )
    if abs(expected - to_decimal(order["total_amount"])) > MONEY_TOLERANCE:
        raise ValidationError(
            f"total_amount {order['total_amount']} does not match subtotal - discount + tax + delivery fee ({expected})"
        )


async def create_order(gateway: Gateway, data: Mapping[str, Any]) -> Dict[str, Any]:
    order = dict(data)

    total = order.get("total_amount")
    if total is None or to_decimal(total) <= 0:
        raise ValidationError("total amount is required and must be greater than 0")
    if not (order.get("contact_name") or "").strip():
        raise ValidationError("contact_name is required")
    if not order.get("pos") and not (order.get("contact_phone") or "").strip():
        raise ValidationError("contact_phone is required")
    check_totals(order)

    order["status"] = parse_status(order.get("status") or OrderStatus.PENDING.value).value
    order.setdefault("contact_phone", "")
    order.setdefault("items", [])
    if not order.get("order_number"):
        order["order_number"] = new_order_number("SST")

    # guest orders hang off one shared profile
    if not order.get("user_id"):
        order["user_id"] = await get_or_create_guest_user(gateway)

    try:
        created = await gateway.create_order(order)
    except PersistenceError:
        logger.error("Error creating order %s", order["order_number"], exc_info=True)
        raise
    logger.info("Created order %s (%s)", created["order_number"], created["status"])
    return created


async def update_order(
    gateway: Gateway,
    order_id: str,
    updates: Mapping[str, Any],
    poller: Optional["PendingOrderPoller"] = None,
) -> Dict[str, Any]:
    """
    Partial update. Money changes are checked against the stored row so the
    totals still balance; confirming an order settles the pending alert.
    """
    changes = {k: v for k, v in updates.items() if k not in ("id", "created_at")}
    if "status" in changes:
        changes["status"] = parse_status(changes["status"]).value
    if MONEY_FIELDS.intersection(changes):
        stored = await gateway.get("orders", order_id)
        if stored is None:
            raise NotFoundError("orders", order_id)
        merged = {**stored, **changes}
        total = merged.get("total_amount")
        if total is None or to_decimal(total) <= 0:
            raise ValidationError("total amount is required and must be greater than 0")
        check_totals(merged)
    changes["updated_at"] = now_iso()
    logger.info("Updating order %s: %s", order_id, sorted(changes))
    updated = await gateway.update_order(order_id, changes)
    if changes.get("status") == OrderStatus.CONFIRMED.value and poller is not None:
        await poller.settle_after_confirm()
    return updated


async def change_status(
    gateway: Gateway,
    order_id: str,
    status: str,
    poller: Optional["PendingOrderPoller"] = None,
) -> Dict[str, Any]:
    """
    Set any status from any status.

    Confirming an order re-checks the pending queue so the alert stops as
    soon as nothing is left to confirm.
    """
    return await update_order(gateway, order_id, {"status": parse_status(status).value}, poller)


async def confirm_all_pending(gateway: Gateway, poller: Optional["PendingOrderPoller"] = None) -> List[Dict[str, Any]]:
    confirmed = []
    for order in await gateway.list_orders(status=OrderStatus.PENDING.value):
        confirmed.append(await change_status(gateway, order["id"], OrderStatus.CONFIRMED.value, poller))
    return confirmed


async def assign_delivery_partner(gateway: Gateway, order_id: str, partner_id: str) -> Dict[str, Any]:
    """
    Hand an order to a courier: order goes out_for_delivery with the partner
    recorded, and the partner is marked unavailable (it stays that way until
    someone flips it back).

    Either both writes land or the order write is reverted.
    """
    order = await gateway.get("orders", order_id)
    if order is None:
        raise NotFoundError("orders", order_id)
    partner = await gateway.get("delivery_partners", partner_id)
    if partner is None:
        raise NotFoundError("delivery_partners", partner_id)

    previous = {
        "status": order.get("status"),
        "delivery_partner_id": order.get("delivery_partner_id"),
        "updated_at": order.get("updated_at"),
    }
    updated = await gateway.update_order(
        order_id,
        {
            "delivery_partner_id": partner_id,
            "status": OrderStatus.OUT_FOR_DELIVERY.value,
            "updated_at": now_iso(),
        },
    )
    try:
        await gateway.update_delivery_partner(partner_id, {"is_available": False, "updated_at": now_iso()})
    except PersistenceError:
        logger.error("Partner %s update failed; reverting order %s", partner_id, order_id, exc_info=True)
        await gateway.update_order(order_id, previous)
        raise
    logger.info("Assigned partner %s to order %s", partner_id, order_id)
    return updated


async def status_counts(gateway: Gateway) -> Dict[str, int]:
    orders = await gateway.list_orders()
    counts = {s.value: 0 for s in OrderStatus}
    for o in orders:
        if o.get("status") in counts:
            counts[o["status"]] += 1
    counts["all"] = len(orders)
    return counts
