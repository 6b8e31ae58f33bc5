"""
Category API routes
"""
from fastapi import APIRouter, Depends, Query, Request
from typing import Optional

from api.deps import require_admin
from data.models.user import User
from models.category import CategoryCreateRequest, CategoryUpdateRequest
from services.category_service import category_service
from utils.response_utils import success_response

router = APIRouter()

@router.get("")
async def get_all_categories(
    req: Request,
    is_active: Optional[bool] = Query(None),
    parent: Optional[str] = Query(None, description="Parent category ID, or 'null' for top level"),
    search: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: str = Query("name"),
    sort_order: str = Query("asc"),
):
    result = await category_service.get_all_categories(
        is_active=is_active,
        parent=parent,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        base_url=req.url.path,
    )
    return success_response(result["categories"], pagination=result["pagination"])

@router.get("/root")
async def get_root_categories():
    return success_response(await category_service.get_category_children(None))

@router.get("/slug/{slug}")
async def get_category_by_slug(slug: str):
    return success_response(await category_service.get_category_by_slug(slug))

@router.get("/{category_id}/children")
async def get_category_children(category_id: str):
    return success_response(await category_service.get_category_children(category_id))

@router.get("/{category_id}")
async def get_category_by_id(category_id: str):
    return success_response(await category_service.get_category_by_id(category_id))

@router.post("", status_code=201)
async def create_category(request: CategoryCreateRequest, admin: User = Depends(require_admin)):
    result = await category_service.create_category(request)
    return success_response(result, message="Category created successfully")

@router.put("/{category_id}")
async def update_category(category_id: str, request: CategoryUpdateRequest,
                          admin: User = Depends(require_admin)):
    result = await category_service.update_category(category_id, request)
    return success_response(result, message="Category updated successfully")

@router.delete("/{category_id}")
async def delete_category(category_id: str, admin: User = Depends(require_admin)):
    await category_service.delete_category(category_id)
    return success_response(message="Category deleted successfully")
