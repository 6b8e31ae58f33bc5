"""
Brand API routes
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from api.deps import require_admin
from data.models.user import User
from models.brand import BrandCreateRequest, BrandUpdateRequest
from services.brand_service import brand_service
from utils.response_utils import success_response

router = APIRouter()

@router.get("")
async def get_all_brands(
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Matches name, slug or description"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: str = Query("name"),
    sort_order: str = Query("asc"),
):
    result = await brand_service.get_all_brands(
        is_active=is_active, search=search, page=page, limit=limit,
        sort_by=sort_by, sort_order=sort_order,
    )
    return success_response(result["brands"], pagination=result["pagination"])

@router.get("/with-product-counts")
async def get_brands_with_product_counts():
    return success_response(await brand_service.get_brands_with_product_counts())

@router.get("/slug/{slug}")
async def get_brand_by_slug(slug: str):
    return success_response(await brand_service.get_brand_by_slug(slug))

@router.get("/{brand_id}")
async def get_brand_by_id(brand_id: str):
    return success_response(await brand_service.get_brand_by_id(brand_id))

@router.post("", status_code=201)
async def create_brand(request: BrandCreateRequest, admin: User = Depends(require_admin)):
    result = await brand_service.create_brand(request)
    return success_response(result, message="Brand created successfully")

@router.put("/{brand_id}")
async def update_brand(brand_id: str, request: BrandUpdateRequest, admin: User = Depends(require_admin)):
    result = await brand_service.update_brand(brand_id, request)
    return success_response(result, message="Brand updated successfully")

@router.delete("/{brand_id}")
async def delete_brand(brand_id: str, admin: User = Depends(require_admin)):
    await brand_service.delete_brand(brand_id)
    return success_response(message="Brand deleted successfully")
