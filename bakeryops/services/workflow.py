# bakeryops/services/workflow.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..errors import ValidationError


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


STATUS_LABELS: Dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

# Default forward action offered for each state. Operators may still set any
# status from any status; nothing here is enforced.
NEXT_STATUS: Dict[OrderStatus, Optional[OrderStatus]] = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: None,
    OrderStatus.CANCELLED: None,
}

ASSIGNABLE_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.PREPARING})


def parse_status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"invalid status {value!r} (expected one of: {allowed})")


def next_status(current: Any) -> Optional[OrderStatus]:
    """The default next step for the order board, or None once delivered/cancelled."""
    return NEXT_STATUS[parse_status(current)]


def can_assign_partner(order: Mapping[str, Any]) -> bool:
    """Partner assignment is offered for confirmed/preparing orders without a partner."""
    status = order.get("status")
    if status not in {s.value for s in ASSIGNABLE_STATUSES}:
        return False
    return not order.get("delivery_partner_id")
