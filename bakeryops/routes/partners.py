# bakeryops/routes/partners.py
from __future__ import annotations
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from ..db import Gateway, get_gateway
from ..services.partners import create_partner, list_partners
from ..services.resources import DELIVERY_PARTNERS, delete_row, update_row

router = APIRouter(prefix="/delivery-partners", tags=["delivery-partners"])


class DeliveryPartnerIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_number: Optional[str] = None
    current_location: Optional[str] = None
    is_available: Optional[bool] = None
    is_active: Optional[bool] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    total_deliveries: Optional[int] = Field(None, ge=0)


@router.get("")
async def list_partners_endpoint(
    available: Optional[bool] = Query(None, description="true = available and active only"),
    gateway: Gateway = Depends(get_gateway),
) -> List[Dict[str, Any]]:
    return await list_partners(gateway, available)


@router.post("")
async def create_partner_endpoint(payload: DeliveryPartnerIn, gateway: Gateway = Depends(get_gateway)):
    return await create_partner(gateway, payload.model_dump(exclude_unset=True))


@router.put("/{partner_id}")
async def update_partner_endpoint(partner_id: str, payload: DeliveryPartnerIn, gateway: Gateway = Depends(get_gateway)):
    return await update_row(gateway, DELIVERY_PARTNERS, partner_id, payload.model_dump(exclude_unset=True))


@router.delete("/{partner_id}")
async def delete_partner_endpoint(partner_id: str, gateway: Gateway = Depends(get_gateway)):
    await delete_row(gateway, DELIVERY_PARTNERS, partner_id)
    return {"success": True}
