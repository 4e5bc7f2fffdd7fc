# bakeryops/routes/promo_codes.py
from __future__ import annotations
from typing import Any, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from ..db import Gateway, get_gateway
from ..services.promo_codes import create_promo_code, update_promo_code
from ..services.resources import PROMO_CODES, delete_row, list_rows

router = APIRouter(prefix="/promo-codes", tags=["promo-codes"])


class PromoCodeIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: Optional[str] = None
    description: Optional[str] = None
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    minimum_amount: Optional[float] = None
    maximum_discount: Optional[float] = None
    valid_from: Optional[str] = None      # YYYY-MM-DD
    valid_until: Optional[str] = None     # YYYY-MM-DD
    usage_limit: Optional[int] = None
    applicable_categories: Optional[Any] = None
    is_active: Optional[bool] = None


@router.get("")
async def list_promo_codes_endpoint(gateway: Gateway = Depends(get_gateway)):
    return await list_rows(gateway, PROMO_CODES)


@router.post("")
async def create_promo_code_endpoint(payload: PromoCodeIn, gateway: Gateway = Depends(get_gateway)):
    return await create_promo_code(gateway, payload.model_dump(exclude_unset=True))


@router.put("/{promo_id}")
async def update_promo_code_endpoint(promo_id: str, payload: PromoCodeIn, gateway: Gateway = Depends(get_gateway)):
    return await update_promo_code(gateway, promo_id, payload.model_dump(exclude_unset=True))


@router.delete("/{promo_id}")
async def delete_promo_code_endpoint(promo_id: str, gateway: Gateway = Depends(get_gateway)):
    await delete_row(gateway, PROMO_CODES, promo_id)
    return {"success": True}
