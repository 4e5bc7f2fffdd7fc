# bakeryops/routes/catalog.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Union
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict

from ..db import Gateway, get_gateway
from ..services import catalog
from ..services.resources import ADDONS, CATEGORIES, COMBOS, PRODUCTS, create_row, delete_row, get_row, list_rows, update_row

products_router = APIRouter(prefix="/products", tags=["products"])
categories_router = APIRouter(prefix="/categories", tags=["categories"])
combos_router = APIRouter(prefix="/combos", tags=["combos"])
addons_router = APIRouter(prefix="/addons", tags=["addons"])

routers = [products_router, categories_router, combos_router, addons_router]


# ---- Pydantic models ---------------------------------------------------------
# Required columns are checked by the services on create, so the same model
# serves partial updates.
class _Row(BaseModel):
    model_config = ConfigDict(extra="allow")


class ProductIn(_Row):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    images: Optional[Union[List[str], str]] = None
    category_id: Optional[str] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    stock_quantity: Optional[int] = None
    max_order_quantity: Optional[int] = None
    tags: Optional[str] = None
    attributes: Optional[Any] = None
    product_type: Optional[str] = None
    combo_items: Optional[Any] = None
    barcode: Optional[str] = None
    online_ordering: Optional[bool] = None


class CategoryIn(_Row):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class ComboIn(_Row):
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    original_price: Optional[float] = None
    discounted_price: Optional[float] = None
    products: Optional[Any] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None
    max_order_quantity: Optional[int] = None


class AddonIn(_Row):
    name: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[float] = None
    status: Optional[bool] = None


# ---- Products ----------------------------------------------------------------
@products_router.get("")
async def list_products_endpoint(
    active: Optional[bool] = Query(None),
    gateway: Gateway = Depends(get_gateway),
) -> List[Dict[str, Any]]:
    return await catalog.list_products(gateway, active=active)


# declared before /{product_id} so "barcode" is not read as an id
@products_router.get("/barcode/{barcode}")
async def product_by_barcode_endpoint(barcode: str, gateway: Gateway = Depends(get_gateway)):
    return await catalog.find_by_barcode(gateway, barcode)


@products_router.get("/{product_id}")
async def get_product_endpoint(product_id: str, gateway: Gateway = Depends(get_gateway)):
    return await get_row(gateway, PRODUCTS, product_id)


@products_router.post("")
async def create_product_endpoint(payload: ProductIn, gateway: Gateway = Depends(get_gateway)):
    return await catalog.create_product(gateway, payload.model_dump(exclude_unset=True))


@products_router.put("/{product_id}")
async def update_product_endpoint(product_id: str, payload: ProductIn, gateway: Gateway = Depends(get_gateway)):
    return await catalog.update_product(gateway, product_id, payload.model_dump(exclude_unset=True))


@products_router.delete("/{product_id}")
async def delete_product_endpoint(product_id: str, gateway: Gateway = Depends(get_gateway)):
    await delete_row(gateway, PRODUCTS, product_id)
    return {"success": True}


# ---- Categories --------------------------------------------------------------
@categories_router.get("")
async def list_categories_endpoint(gateway: Gateway = Depends(get_gateway)):
    return await list_rows(gateway, CATEGORIES)


@categories_router.post("")
async def create_category_endpoint(payload: CategoryIn, gateway: Gateway = Depends(get_gateway)):
    return await catalog.create_category(gateway, payload.model_dump(exclude_unset=True))


@categories_router.put("/{category_id}")
async def update_category_endpoint(category_id: str, payload: CategoryIn, gateway: Gateway = Depends(get_gateway)):
    return await update_row(gateway, CATEGORIES, category_id, payload.model_dump(exclude_unset=True))


@categories_router.delete("/{category_id}")
async def delete_category_endpoint(category_id: str, gateway: Gateway = Depends(get_gateway)):
    await delete_row(gateway, CATEGORIES, category_id)
    return {"success": True}


# ---- Combos ------------------------------------------------------------------
@combos_router.get("")
async def list_combos_endpoint(gateway: Gateway = Depends(get_gateway)):
    return await list_rows(gateway, COMBOS)


@combos_router.post("")
async def create_combo_endpoint(payload: ComboIn, gateway: Gateway = Depends(get_gateway)):
    return await catalog.create_combo(gateway, payload.model_dump(exclude_unset=True))


@combos_router.put("/{combo_id}")
async def update_combo_endpoint(combo_id: str, payload: ComboIn, gateway: Gateway = Depends(get_gateway)):
    return await catalog.update_combo(gateway, combo_id, payload.model_dump(exclude_unset=True))


@combos_router.delete("/{combo_id}")
async def delete_combo_endpoint(combo_id: str, gateway: Gateway = Depends(get_gateway)):
    await delete_row(gateway, COMBOS, combo_id)
    return {"success": True}


# ---- Add-ons -----------------------------------------------------------------
@addons_router.get("")
async def list_addons_endpoint(gateway: Gateway = Depends(get_gateway)):
    return await list_rows(gateway, ADDONS)


@addons_router.post("")
async def create_addon_endpoint(payload: AddonIn, gateway: Gateway = Depends(get_gateway)):
    return await create_row(gateway, ADDONS, payload.model_dump(exclude_unset=True))


@addons_router.put("/{addon_id}")
async def update_addon_endpoint(addon_id: str, payload: AddonIn, gateway: Gateway = Depends(get_gateway)):
    return await update_row(gateway, ADDONS, addon_id, payload.model_dump(exclude_unset=True))


@addons_router.delete("/{addon_id}")
async def delete_addon_endpoint(addon_id: str, gateway: Gateway = Depends(get_gateway)):
    await delete_row(gateway, ADDONS, addon_id)
    return {"success": True}
