# bakeryops/services/resources.py
"""Table-scoped CRUD shared by every back-office resource."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..db import Gateway, now_iso
from ..errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resource:
    table: str
    label: str
    required: Tuple[str, ...] = ()
    order_by: Optional[str] = None
    descending: bool = False


PRODUCTS = Resource("products", "product", ("name", "price"), "created_at", True)
CATEGORIES = Resource("categories", "category", ("name",), "display_order")
COMBOS = Resource("combos", "combo", ("name", "original_price", "discounted_price"), "display_order")
ADDONS = Resource("cart_addons", "add-on", ("name",), "name")
DELIVERY_PARTNERS = Resource("delivery_partners", "delivery partner", ("name",), "name")
PROFILES = Resource("profiles", "profile", (), "created_at", True)
PROMO_CODES = Resource(
    "promo_codes",
    "promo code",
    ("code", "discount_type", "discount_value", "valid_from", "valid_until"),
    "created_at",
    True,
)


def require_fields(resource: Resource, data: Mapping[str, Any]) -> None:
    missing = [
        f for f in resource.required
        if data.get(f) is None or (isinstance(data.get(f), str) and not data[f].strip())
    ]
    if missing:
        raise ValidationError(f"{resource.label} {', '.join(missing)} required")


async def list_rows(
    gateway: Gateway, resource: Resource, filters: Optional[Mapping[str, Any]] = None
) -> List[Dict[str, Any]]:
    return await gateway.list(resource.table, filters, order_by=resource.order_by, descending=resource.descending)


async def get_row(gateway: Gateway, resource: Resource, row_id: str) -> Dict[str, Any]:
    row = await gateway.get(resource.table, row_id)
    if row is None:
        raise NotFoundError(resource.table, row_id)
    return row


async def create_row(gateway: Gateway, resource: Resource, data: Mapping[str, Any]) -> Dict[str, Any]:
    require_fields(resource, data)
    row = await gateway.insert(resource.table, data)
    logger.info("Created %s %s", resource.label, row["id"])
    return row


async def update_row(gateway: Gateway, resource: Resource, row_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
    changes = {k: v for k, v in data.items() if k not in ("id", "created_at")}
    for f in resource.required:
        # required columns may be omitted on update, never blanked
        if f in changes and (changes[f] is None or changes[f] == ""):
            raise ValidationError(f"{resource.label} {f} cannot be empty")
    changes["updated_at"] = now_iso()
    return await gateway.update(resource.table, row_id, changes)


async def delete_row(gateway: Gateway, resource: Resource, row_id: str) -> None:
    await gateway.delete(resource.table, row_id)
    logger.info("Deleted %s %s", resource.label, row_id)
