# bakeryops/services/partners.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from ..db import Gateway
from ..errors import ValidationError
from .resources import DELIVERY_PARTNERS, create_row, list_rows


async def list_partners(gateway: Gateway, available: Optional[bool] = None) -> List[Dict[str, Any]]:
    """
    Partners ordered by name. `available=True` narrows to couriers that can
    take an order right now (available AND active).
    """
    partners = await list_rows(gateway, DELIVERY_PARTNERS)
    if available is None:
        return partners
    if available:
        return [p for p in partners if p.get("is_available") and p.get("is_active")]
    return [p for p in partners if not (p.get("is_available") and p.get("is_active"))]


async def create_partner(gateway: Gateway, data: Mapping[str, Any]) -> Dict[str, Any]:
    payload = dict(data)
    rating = payload.get("rating")
    if rating is not None and not 0 <= float(rating) <= 5:
        raise ValidationError("rating must be between 0 and 5")
    payload.setdefault("is_available", True)
    payload.setdefault("is_active", True)
    payload.setdefault("total_deliveries", 0)
    return await create_row(gateway, DELIVERY_PARTNERS, payload)
