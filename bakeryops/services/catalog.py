# bakeryops/services/catalog.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..db import Gateway
from ..errors import NotFoundError, ValidationError
from .resources import CATEGORIES, COMBOS, PRODUCTS, create_row, list_rows, update_row

logger = logging.getLogger(__name__)


def _normalize_images(data: Dict[str, Any]) -> Dict[str, Any]:
    """`images` may arrive as a JSON string from form posts; anything unparsable becomes None."""
    images = data.get("images")
    if isinstance(images, str):
        try:
            parsed = json.loads(images)
        except json.JSONDecodeError:
            parsed = None
        data["images"] = parsed if isinstance(parsed, list) else None
    return data


def _check_price(data: Mapping[str, Any], field: str) -> None:
    value = data.get(field)
    if value is not None and float(value) < 0:
        raise ValidationError(f"{field} must be >= 0")


# ---- products ----------------------------------------------------------------
async def list_products(gateway: Gateway, active: Optional[bool] = None) -> List[Dict[str, Any]]:
    """Newest first, each with its category summary under `categories`."""
    filters = {"is_active": active} if active is not None else None
    products = await list_rows(gateway, PRODUCTS, filters)
    categories = await gateway.get_many("categories", (p.get("category_id") for p in products))
    out = []
    for p in products:
        cat = categories.get(p.get("category_id") or "")
        out.append({**p, "categories": {"id": cat["id"], "name": cat.get("name")} if cat else None})
    return out


async def create_product(gateway: Gateway, data: Mapping[str, Any]) -> Dict[str, Any]:
    payload = _normalize_images(dict(data))
    _check_price(payload, "price")
    payload.setdefault("is_active", True)
    return await create_row(gateway, PRODUCTS, payload)


async def update_product(gateway: Gateway, product_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
    payload = _normalize_images(dict(data))
    _check_price(payload, "price")
    return await update_row(gateway, PRODUCTS, product_id, payload)


async def find_by_barcode(gateway: Gateway, barcode: str) -> Dict[str, Any]:
    """Scanner lookup; only active products match."""
    code = (barcode or "").strip()
    if not code:
        raise ValidationError("barcode is required")
    rows = await gateway.list("products", {"barcode": code, "is_active": True})
    if not rows:
        raise NotFoundError("products", code)
    return rows[0]


# ---- categories --------------------------------------------------------------
def slugify(s: str) -> str:
    return (
        s.strip()
        .lower()
        .replace("&", " and ")
        .replace("/", " ")
        .replace("_", " ")
        .encode("ascii", "ignore").decode("ascii")
        .replace("'", "")
        .replace(".", " ")
        .replace(",", " ")
        .replace("  ", " ")
        .strip()
        .replace(" ", "-")
    )


async def create_category(gateway: Gateway, data: Mapping[str, Any]) -> Dict[str, Any]:
    payload = dict(data)
    if payload.get("name") and not payload.get("slug"):
        payload["slug"] = slugify(payload["name"])
    payload.setdefault("is_active", True)
    return await create_row(gateway, CATEGORIES, payload)


# ---- combos ------------------------------------------------------------------
def _check_combo_prices(data: Mapping[str, Any]) -> None:
    _check_price(data, "original_price")
    _check_price(data, "discounted_price")
    original, discounted = data.get("original_price"), data.get("discounted_price")
    if original is not None and discounted is not None and float(discounted) > float(original):
        raise ValidationError("discounted_price cannot exceed original_price")


async def create_combo(gateway: Gateway, data: Mapping[str, Any]) -> Dict[str, Any]:
    payload = dict(data)
    _check_combo_prices(payload)
    payload.setdefault("is_active", True)
    return await create_row(gateway, COMBOS, payload)


async def update_combo(gateway: Gateway, combo_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
    payload = dict(data)
    _check_combo_prices(payload)
    return await update_row(gateway, COMBOS, combo_id, payload)
