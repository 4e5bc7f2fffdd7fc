# bakeryops/services/promo_codes.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from ..db import Gateway
from ..errors import ValidationError
from .resources import PROMO_CODES, create_row, get_row, update_row

DISCOUNT_TYPES = ("percentage", "fixed")


def _day_bound(value: Any, end: bool) -> Any:
    """'2025-01-31' -> '2025-01-31T00:00:00Z' (or T23:59:59Z for the end of the window)."""
    if not value:
        return value
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        day = value
    else:
        try:
            day = date.fromisoformat(str(value)[:10])
        except ValueError:
            raise ValidationError(f"invalid date {value!r} (expected YYYY-MM-DD)")
    return f"{day.isoformat()}T{'23:59:59' if end else '00:00:00'}Z"


def normalize_promo(data: Mapping[str, Any], stored: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Clean a create/update payload; cross-field rules also see the `stored` row on update."""
    payload = dict(data)
    if "code" in payload and isinstance(payload["code"], str):
        payload["code"] = payload["code"].strip().upper()
    if "valid_from" in payload:
        payload["valid_from"] = _day_bound(payload["valid_from"], end=False)
    if "valid_until" in payload:
        payload["valid_until"] = _day_bound(payload["valid_until"], end=True)
    if payload.get("discount_type") is not None and payload["discount_type"] not in DISCOUNT_TYPES:
        raise ValidationError(f"discount_type must be one of: {', '.join(DISCOUNT_TYPES)}")
    if payload.get("discount_value") is not None and float(payload["discount_value"]) <= 0:
        raise ValidationError("discount_value must be greater than 0")
    merged = {**(stored or {}), **payload}
    value = merged.get("discount_value")
    if merged.get("discount_type") == "percentage" and value is not None and float(value) > 100:
        raise ValidationError("percentage discount cannot exceed 100")
    if merged.get("valid_from") and merged.get("valid_until") and merged["valid_from"] > merged["valid_until"]:
        raise ValidationError("valid_from must not be after valid_until")
    return payload


async def create_promo_code(gateway: Gateway, data: Mapping[str, Any]) -> Dict[str, Any]:
    payload = normalize_promo(data)
    payload.setdefault("times_used", 0)
    payload.setdefault("is_active", True)
    return await create_row(gateway, PROMO_CODES, payload)


async def update_promo_code(gateway: Gateway, promo_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
    stored = await get_row(gateway, PROMO_CODES, promo_id)
    return await update_row(gateway, PROMO_CODES, promo_id, normalize_promo(data, stored))
