# bakeryops/routes/profiles.py
from __future__ import annotations
from typing import Literal, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ..db import Gateway, get_gateway
from ..services.profiles import adjust_loyalty_points
from ..services.resources import PROFILES, delete_row, list_rows, update_row

router = APIRouter(prefix="/profiles", tags=["profiles"])


class ProfileIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    date_of_birth: Optional[str] = None
    loyalty_points: Optional[int] = Field(None, ge=0)


class LoyaltyBody(BaseModel):
    type: Literal["add", "subtract"]
    points: int = Field(..., gt=0)


@router.get("")
async def list_profiles_endpoint(gateway: Gateway = Depends(get_gateway)):
    return await list_rows(gateway, PROFILES)


@router.put("/{profile_id}")
async def update_profile_endpoint(profile_id: str, payload: ProfileIn, gateway: Gateway = Depends(get_gateway)):
    return await update_row(gateway, PROFILES, profile_id, payload.model_dump(exclude_unset=True))


@router.post("/{profile_id}/loyalty")
async def loyalty_endpoint(profile_id: str, body: LoyaltyBody, gateway: Gateway = Depends(get_gateway)):
    """Add or take away reward points; the balance never drops below zero."""
    return await adjust_loyalty_points(gateway, profile_id, body.type, body.points)


@router.delete("/{profile_id}")
async def delete_profile_endpoint(profile_id: str, gateway: Gateway = Depends(get_gateway)):
    await delete_row(gateway, PROFILES, profile_id)
    return {"success": True}
