# bakeryops/services/profiles.py
from __future__ import annotations

import logging
from typing import Any, Dict

from ..db import Gateway
from ..errors import ValidationError
from .resources import PROFILES, get_row, update_row

logger = logging.getLogger(__name__)

ADD = "add"
SUBTRACT = "subtract"


def apply_points(current: int, change_type: str, points: int) -> int:
    """Balance after an add/subtract; subtracting never goes below zero."""
    if points <= 0:
        raise ValidationError("points must be a positive number")
    if change_type == ADD:
        return current + points
    if change_type == SUBTRACT:
        return max(0, current - points)
    raise ValidationError(f"type must be '{ADD}' or '{SUBTRACT}'")


async def adjust_loyalty_points(gateway: Gateway, profile_id: str, change_type: str, points: int) -> Dict[str, Any]:
    profile = await get_row(gateway, PROFILES, profile_id)
    current = int(profile.get("loyalty_points") or 0)
    new_points = apply_points(current, change_type, points)
    logger.info("Loyalty points for %s: %d -> %d", profile_id, current, new_points)
    return await update_row(gateway, PROFILES, profile_id, {"loyalty_points": new_points})
