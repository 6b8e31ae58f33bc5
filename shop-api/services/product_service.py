"""
Product Service
"""
from typing import Any, Dict, List, Optional

from data.models.product import Product as DataProduct
from data.repositories.brand_repository import brand_repo
from data.repositories.category_repository import category_repo
from data.repositories.product_repository import (
    ProductFilter,
    product_repo,
    resolve_sort_field,
)
from models.product import (
    AdminProductListItem,
    AvailableFilters,
    Product as ApiProduct,
    ProductCreateRequest,
    ProductListItem,
    ProductPagination,
    ProductUpdateRequest,
    ReviewCreateRequest,
    ReviewResult,
)
from services.category_service import CACHE_PREFIX as CATEGORY_CACHE_PREFIX
from utils.cache import cache
from utils.exceptions import ConflictError, NotFoundError, ValidationError
from utils.id_generator import generate_id
from utils.logger import get_logger
from utils.pagination import decode_cursor, encode_cursor, get_pagination_params
from utils.time_utils import now
from utils.validators import generate_slug, validate_uuid

logger = get_logger(__name__)

FILTERS_CACHE_KEY = "products:filters"
SHOWCASE_LIMIT = 8
RELATED_LIMIT = 4

class ProductService:
    """Product Service"""

    def _to_api(self, product: DataProduct) -> ApiProduct:
        return ApiProduct.model_validate(product)

    def _invalidate_listings(self):
        cache.clear(FILTERS_CACHE_KEY)
        # Category responses carry product counts
        cache.clear(CATEGORY_CACHE_PREFIX)

    def _to_list_item(self, product: DataProduct, admin: bool = False) -> ProductListItem:
        model = AdminProductListItem if admin else ProductListItem
        return model.model_validate(product)

    async def _get_or_404(self, product_id: str) -> DataProduct:
        product_id = validate_uuid(product_id, "Invalid product ID format")
        product = await product_repo.get_by_id(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def _resolve_slug(self, requested: Optional[str], name: str, exclude_id: Optional[str] = None) -> str:
        slug = generate_slug(requested or name)
        if not slug:
            raise ValidationError("Product slug cannot be empty")
        if await product_repo.slug_exists(slug, exclude_id):
            raise ConflictError("Product with this slug already exists")
        return slug

    async def _check_relations(self, category_id: Optional[str], brand_id: Optional[str]):
        if category_id is not None:
            if not await category_repo.get_by_id(validate_uuid(category_id, "Invalid category ID format")):
                raise NotFoundError("Category not found")
        if brand_id:
            if not await brand_repo.get_by_id(validate_uuid(brand_id, "Invalid brand ID format")):
                raise NotFoundError("Brand not found")

    async def get_all_products(self, filters: ProductFilter, sort_by: Optional[str] = "created_at",
                               sort_order: Optional[str] = "desc", page: Any = None, limit: Any = None,
                               cursor: Optional[str] = None, cursor_direction: str = "next",
                               admin: bool = False) -> Dict[str, Any]:
        """
        Filtered product listing.

        Without a cursor this is classic page/limit paging. With a cursor the
        page is read relative to the cursor row in ``cursor_direction``,
        ``total_pages``/``current_page`` are omitted and ``total_count`` still
        reflects the whole filtered set.
        """
        sort_field = resolve_sort_field(sort_by)
        order = "asc" if (sort_order or "").lower() == "asc" else "desc"
        params = get_pagination_params(page, limit, default_limit=10, max_limit=100)

        decoded = None
        if cursor:
            if cursor_direction not in ("next", "prev"):
                raise ValidationError("cursor_direction must be 'next' or 'prev'")
            decoded = decode_cursor(cursor)

        if filters.category_id:
            filters.category_id = validate_uuid(filters.category_id, "Invalid category ID format")
        if filters.brand_id:
            filters.brand_id = validate_uuid(filters.brand_id, "Invalid brand ID format")

        result = await product_repo.find_page(
            filters,
            sort_field=sort_field,
            sort_order=order,
            limit=params.limit,
            offset=params.offset,
            cursor=decoded,
            direction=cursor_direction,
        )
        products = result.products

        next_cursor = prev_cursor = None
        if products:
            next_cursor = encode_cursor(getattr(products[-1], sort_field), products[-1].id)
            prev_cursor = encode_cursor(getattr(products[0], sort_field), products[0].id)

        if decoded is None:
            total_pages = -(-result.total_count // params.limit)
            pagination = ProductPagination(
                total_count=result.total_count,
                total_pages=total_pages,
                current_page=params.page,
                limit=params.limit,
                has_next_page=params.page < total_pages,
                has_prev_page=params.page > 1,
                next_cursor=next_cursor,
                prev_cursor=prev_cursor,
            )
        else:
            forward = cursor_direction == "next"
            pagination = ProductPagination(
                total_count=result.total_count,
                limit=params.limit,
                has_next_page=result.has_more if forward else True,
                has_prev_page=True if forward else result.has_more,
                next_cursor=next_cursor,
                prev_cursor=prev_cursor,
            )

        return {
            "products": [self._to_list_item(p, admin) for p in products],
            "pagination": pagination,
        }

    async def get_product_by_id(self, product_id: str, admin: bool = False) -> ApiProduct:
        product = await self._get_or_404(product_id)
        if not admin and not product.is_visible:
            raise NotFoundError("Product not found")
        return self._to_api(product)

    async def get_product_by_slug(self, slug: str, admin: bool = False) -> ApiProduct:
        product = await product_repo.get_by_slug(slug)
        if not product or (not admin and not product.is_visible):
            raise NotFoundError("Product not found")
        return self._to_api(product)

    async def create_product(self, dto: ProductCreateRequest) -> ApiProduct:
        await self._check_relations(dto.category, dto.brand)
        slug = await self._resolve_slug(dto.slug, dto.name)

        variants = [variant.model_dump() for variant in dto.variants]
        product = DataProduct(
            id=generate_id(),
            name=dto.name.strip(),
            slug=slug,
            description=dto.description,
            short_description=dto.short_description,
            brand_id=validate_uuid(dto.brand) if dto.brand else None,
            category_id=validate_uuid(dto.category),
            images=[image.model_dump() for image in dto.images],
            tags=dto.tags,
            attributes=dto.attributes,
            price=dto.price,
            compare_at_price=dto.compare_at_price,
            variants=variants,
            seo=dto.seo.model_dump(),
            status=dto.status,
            is_published=dto.is_published,
            is_featured=dto.is_featured,
            has_variants=dto.has_variants if dto.has_variants is not None else bool(variants),
            inventory_quantity=dto.inventory_quantity,
            inventory_tracking=dto.inventory_tracking,
        )
        product.normalize()

        product = await product_repo.create(product)
        self._invalidate_listings()
        return self._to_api(product)

    async def update_product(self, product_id: str, dto: ProductUpdateRequest) -> ApiProduct:
        product = await self._get_or_404(product_id)
        changes = dto.model_dump(exclude_unset=True)

        if "category" in changes or "brand" in changes:
            await self._check_relations(changes.get("category"), changes.get("brand"))
        if "category" in changes:
            if not changes["category"]:
                raise ValidationError("Product category is required")
            product.category_id = validate_uuid(changes.pop("category"))
        if "brand" in changes:
            brand = changes.pop("brand")
            product.brand_id = validate_uuid(brand) if brand else None

        requested_slug = changes.pop("slug", None)
        new_name = changes.get("name")
        if requested_slug:
            product.slug = await self._resolve_slug(requested_slug, product.name, exclude_id=product.id)
        elif new_name and new_name != product.name:
            product.slug = await self._resolve_slug(None, new_name, exclude_id=product.id)

        if "variants" in changes and "has_variants" not in changes:
            changes["has_variants"] = bool(changes["variants"])

        for key, value in changes.items():
            if key == "seo":
                value = value or {}
            setattr(product, key, value)
        product.normalize()

        product = await product_repo.update(product)
        self._invalidate_listings()
        logger.info("Product updated", product_id=product.id)
        return self._to_api(product)

    async def delete_product(self, product_id: str):
        product = await self._get_or_404(product_id)
        await product_repo.delete(product.id)
        self._invalidate_listings()

    async def add_product_review(self, product_id: str, dto: ReviewCreateRequest, user_id: str) -> ReviewResult:
        product = await self._get_or_404(product_id)
        product.add_review({
            "id": generate_id(),
            "user_id": user_id,
            "rating": dto.rating,
            "title": dto.title,
            "content": dto.content,
            "is_verified_purchase": False,
            "created_at": now().isoformat(),
        })
        await product_repo.save_reviews(product)
        logger.info("Review added", product_id=product.id, rating=dto.rating,
                    average_rating=product.average_rating)
        return ReviewResult(id=product.id, average_rating=product.average_rating,
                            review_count=product.review_count)

    async def update_product_inventory(self, product_id: str, quantity: int,
                                       variant_id: Optional[str] = None) -> ApiProduct:
        product = await self._get_or_404(product_id)
        quantity = max(0, int(quantity))

        if product.has_variants:
            if not variant_id:
                raise ValidationError("Variant ID required for variant products")
            variant = product.find_variant(variant_id)
            if not variant:
                raise NotFoundError("Variant not found")
            variant["inventory_quantity"] = quantity
        else:
            product.inventory_quantity = quantity

        await product_repo.update_inventory(product)
        logger.info("Inventory updated", product_id=product.id, variant_id=variant_id, quantity=quantity)
        return self._to_api(product)

    async def _set_flag(self, product_id: str, flag: str, value: Optional[bool]) -> ApiProduct:
        if value is None:
            raise ValidationError(f"{flag} field is required")
        product_id = validate_uuid(product_id, "Invalid product ID format")
        product = await product_repo.set_flag(product_id, flag, value)
        if not product:
            raise NotFoundError("Product not found")
        cache.clear(FILTERS_CACHE_KEY)
        return self._to_api(product)

    async def toggle_product_featured(self, product_id: str, is_featured: Optional[bool]) -> ApiProduct:
        return await self._set_flag(product_id, "is_featured", is_featured)

    async def toggle_product_published(self, product_id: str, is_published: Optional[bool]) -> ApiProduct:
        return await self._set_flag(product_id, "is_published", is_published)

    async def get_related_products(self, product_id: str, limit: int = RELATED_LIMIT) -> List[ProductListItem]:
        """Products from sibling categories, or from the same subtree for top level categories"""
        product = await self._get_or_404(product_id)
        category = await category_repo.get_by_id(product.category_id)
        if not category:
            return []

        if category.parent_id:
            siblings = await category_repo.get_children(category.parent_id)
            filters = ProductFilter.storefront(category_ids=[c.id for c in siblings],
                                               exclude_id=product.id)
        else:
            filters = ProductFilter.storefront(category_id=category.id, exclude_id=product.id)

        related = await product_repo.find_top(filters, "p.created_at DESC, p.id DESC", limit)
        return [self._to_list_item(p) for p in related]

    async def get_featured_products(self, limit: int = SHOWCASE_LIMIT) -> List[ProductListItem]:
        products = await product_repo.find_top(
            ProductFilter.storefront(is_featured=True), "p.created_at DESC, p.id DESC", limit
        )
        return [self._to_list_item(p) for p in products]

    async def get_new_arrivals(self, limit: int = SHOWCASE_LIMIT) -> List[ProductListItem]:
        products = await product_repo.find_top(
            ProductFilter.storefront(), "p.created_at DESC, p.id DESC", limit
        )
        return [self._to_list_item(p) for p in products]

    async def get_best_sellers(self, limit: int = SHOWCASE_LIMIT) -> List[ProductListItem]:
        products = await product_repo.find_top(
            ProductFilter.storefront(min_review_count=1),
            "p.average_rating DESC, p.review_count DESC, p.id DESC",
            limit,
        )
        return [self._to_list_item(p) for p in products]

    async def get_available_filters(self) -> AvailableFilters:
        async def load():
            return AvailableFilters.model_validate(await product_repo.get_filter_facets())

        return await cache.get_or_set(FILTERS_CACHE_KEY, load)


product_service = ProductService()
