"""
Product API routes
"""
from fastapi import APIRouter, Body, Depends, Query
from typing import Optional

from api.deps import get_current_user, require_admin
from data.models.user import User
from data.repositories.product_repository import ProductFilter
from models.product import (
    FeaturedUpdateRequest,
    InventoryUpdateRequest,
    ProductCreateRequest,
    ProductUpdateRequest,
    PublishedUpdateRequest,
    ReviewCreateRequest,
)
from models.user import WishlistRequest
from services.product_service import product_service
from services.user_service import user_service
from utils.logger import get_logger
from utils.response_utils import success_response

logger = get_logger(__name__)
router = APIRouter()

def product_filters(
    category: Optional[str] = Query(None, description="Category ID, includes subcategories"),
    brand: Optional[str] = Query(None, description="Brand ID"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    color: Optional[str] = Query(None),
    size: Optional[str] = Query(None),
    material: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches name, description or brand name"),
    featured: Optional[bool] = Query(None),
) -> ProductFilter:
    return ProductFilter(
        category_id=category,
        brand_id=brand,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        color=color,
        size=size,
        material=material,
        search=search,
        is_featured=featured,
    )

class ListingParams:
    """Sort and paging query parameters shared by both listings"""

    def __init__(
        self,
        sort_by: Optional[str] = Query("created_at"),
        sort_order: Optional[str] = Query("desc"),
        page: Optional[str] = Query(None),
        limit: Optional[str] = Query(None),
        cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
        cursor_direction: str = Query("next", description="next or prev"),
    ):
        self.sort_by = sort_by
        self.sort_order = sort_order
        self.page = page
        self.limit = limit
        self.cursor = cursor
        self.cursor_direction = cursor_direction

async def _list(filters: ProductFilter, listing: ListingParams, admin: bool):
    result = await product_service.get_all_products(
        filters,
        sort_by=listing.sort_by,
        sort_order=listing.sort_order,
        page=listing.page,
        limit=listing.limit,
        cursor=listing.cursor,
        cursor_direction=listing.cursor_direction,
        admin=admin,
    )
    return success_response(result["products"], pagination=result["pagination"])

@router.get("/filters")
async def get_available_filters():
    return success_response(await product_service.get_available_filters())

@router.get("/wishlist")
async def get_wishlist_products(user: User = Depends(get_current_user)):
    return success_response(await user_service.get_wishlist_products(user))

@router.get("/admin")
async def get_admin_products(
    filters: ProductFilter = Depends(product_filters),
    listing: ListingParams = Depends(),
    status: Optional[str] = Query(None),
    published: Optional[bool] = Query(None),
    admin: User = Depends(require_admin),
):
    """Every product regardless of status, with the admin field set"""
    filters.status = status
    filters.is_published = published
    return await _list(filters, listing, admin=True)

@router.get("")
async def get_all_products(
    filters: ProductFilter = Depends(product_filters),
    listing: ListingParams = Depends(),
):
    """Storefront listing: active, published products only"""
    filters.status = "active"
    filters.is_published = True
    return await _list(filters, listing, admin=False)

@router.get("/featured")
async def get_featured_products(limit: int = Query(8, ge=1, le=50)):
    return success_response(await product_service.get_featured_products(limit))

@router.get("/new-arrivals")
async def get_new_arrivals(limit: int = Query(8, ge=1, le=50)):
    return success_response(await product_service.get_new_arrivals(limit))

@router.get("/best-sellers")
async def get_best_sellers(limit: int = Query(8, ge=1, le=50)):
    return success_response(await product_service.get_best_sellers(limit))

@router.get("/slug/{slug}")
async def get_product_by_slug(slug: str):
    return success_response(await product_service.get_product_by_slug(slug))

@router.get("/admin/id/{product_id}")
async def get_admin_product_by_id(product_id: str, admin: User = Depends(require_admin)):
    return success_response(await product_service.get_product_by_id(product_id, admin=True))

@router.get("/admin/slug/{slug}")
async def get_admin_product_by_slug(slug: str, admin: User = Depends(require_admin)):
    return success_response(await product_service.get_product_by_slug(slug, admin=True))

@router.get("/{product_id}/related")
async def get_related_products(product_id: str, limit: int = Query(4, ge=1, le=20)):
    return success_response(await product_service.get_related_products(product_id, limit))

@router.get("/{product_id}")
async def get_product_by_id(product_id: str):
    return success_response(await product_service.get_product_by_id(product_id))

@router.post("", status_code=201)
async def create_product(request: ProductCreateRequest, admin: User = Depends(require_admin)):
    result = await product_service.create_product(request)
    logger.info("Product created", product_id=result.id, admin_id=admin.id)
    return success_response(result, message="Product created successfully")

@router.put("/{product_id}")
async def update_product(product_id: str, request: ProductUpdateRequest,
                         admin: User = Depends(require_admin)):
    result = await product_service.update_product(product_id, request)
    return success_response(result, message="Product updated successfully")

@router.patch("/{product_id}/inventory")
async def update_product_inventory(product_id: str, request: InventoryUpdateRequest,
                                   admin: User = Depends(require_admin)):
    result = await product_service.update_product_inventory(product_id, request.quantity, request.variant_id)
    return success_response(result, message="Inventory updated successfully")

@router.put("/{product_id}/featured")
async def toggle_product_featured(product_id: str, request: FeaturedUpdateRequest,
                                  admin: User = Depends(require_admin)):
    result = await product_service.toggle_product_featured(product_id, request.is_featured)
    state = "featured" if result.is_featured else "unfeatured"
    return success_response(result, message=f"Product {state} successfully")

@router.put("/{product_id}/published")
async def toggle_product_published(product_id: str, request: PublishedUpdateRequest,
                                   admin: User = Depends(require_admin)):
    result = await product_service.toggle_product_published(product_id, request.is_published)
    state = "published" if result.is_published else "unpublished"
    return success_response(result, message=f"Product {state} successfully")

@router.delete("/{product_id}")
async def delete_product(product_id: str, admin: User = Depends(require_admin)):
    await product_service.delete_product(product_id)
    return success_response(message="Product deleted successfully")

@router.post("/{product_id}/reviews", status_code=201)
async def add_product_review(product_id: str, request: ReviewCreateRequest,
                             user: User = Depends(get_current_user)):
    result = await product_service.add_product_review(product_id, request, user.id)
    return success_response(result, message="Review added successfully")

@router.post("/{product_id}/wishlist")
async def toggle_product_in_wishlist(product_id: str,
                                     request: Optional[WishlistRequest] = Body(None),
                                     user: User = Depends(get_current_user)):
    variant_id = request.variant_id if request else None
    result = await user_service.toggle_wishlist(user, product_id, variant_id)
    message = "Product added to wishlist" if result["in_wishlist"] else "Product removed from wishlist"
    return success_response(result, message=message)
