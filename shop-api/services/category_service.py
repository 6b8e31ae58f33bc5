"""
Category Service

Keeps the materialized ``ancestors`` path of every category consistent: the
path is computed from the parent on create, and on rename, re-slug or move
the category and its whole subtree are rewritten in one transaction.
"""
from typing import Any, Dict, List, Optional

from data.database import db_manager
from data.models.category import (
    Category as DataCategory,
    build_ancestors,
    creates_cycle,
    rebase_ancestors,
)
from data.repositories.category_repository import category_repo
from models.category import Category as ApiCategory, CategoryCreateRequest, CategoryUpdateRequest
from utils.cache import cache
from utils.exceptions import ConflictError, NotFoundError, ValidationError
from utils.id_generator import generate_id
from utils.logger import get_logger
from utils.pagination import build_pagination_result, get_pagination_params
from utils.validators import generate_slug, validate_uuid

logger = get_logger(__name__)

CACHE_PREFIX = "categories:"

class CategoryService:
    """Category Service"""

    def _to_api(self, category: DataCategory) -> ApiCategory:
        parent = category.ancestors[-1] if category.parent_id and category.ancestors else None
        return ApiCategory(
            id=category.id,
            name=category.name,
            slug=category.slug,
            description=category.description,
            parent=parent,
            ancestors=category.ancestors,
            image=category.image,
            seo=category.seo or {},
            is_active=category.is_active,
            display_order=category.display_order,
            products_count=category.products_count,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )

    def _invalidate(self):
        cache.clear(CACHE_PREFIX)
        # Product filter facets list categories too
        cache.clear("products:filters")

    async def _get_or_404(self, category_id: str) -> DataCategory:
        category_id = validate_uuid(category_id, "Invalid category ID format")
        category = await category_repo.get_by_id(category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def _get_parent(self, parent_id: str) -> DataCategory:
        parent_id = validate_uuid(parent_id, "Invalid parent category ID")
        parent = await category_repo.get_by_id(parent_id)
        if not parent:
            raise NotFoundError("Parent category not found")
        return parent

    async def _resolve_slug(self, requested: Optional[str], name: str, exclude_id: Optional[str] = None) -> str:
        slug = generate_slug(requested or name)
        if not slug:
            raise ValidationError("Category slug cannot be empty")
        if await category_repo.slug_exists(slug, exclude_id):
            raise ConflictError("Category with this slug already exists")
        return slug

    async def get_all_categories(self, is_active: Optional[bool] = None, parent: Optional[str] = None,
                                 search: Optional[str] = None, page: Any = None, limit: Any = None,
                                 sort_by: str = "name", sort_order: str = "asc",
                                 base_url: Optional[str] = None) -> Dict[str, Any]:
        params = get_pagination_params(page, limit, default_limit=50, max_limit=100)
        root_only = parent == "null"
        parent_id = None
        if parent and not root_only:
            parent_id = validate_uuid(parent, "Invalid parent category ID")

        cache_key = (f"{CACHE_PREFIX}list:{is_active}:{parent}:{search}:{params.page}:"
                     f"{params.limit}:{sort_by}:{sort_order}")

        async def load():
            categories, total = await category_repo.find_all(
                is_active=is_active,
                parent=parent_id,
                root_only=root_only,
                search=search,
                sort_by=sort_by,
                sort_order=sort_order,
                limit=params.limit,
                offset=params.offset,
            )
            query = {"is_active": is_active, "parent": parent, "search": search,
                     "sort_by": sort_by, "sort_order": sort_order}
            return {
                "categories": [self._to_api(c) for c in categories],
                "pagination": build_pagination_result(total, params.page, params.limit, base_url, query),
            }

        return await cache.get_or_set(cache_key, load)

    async def get_category_by_id(self, category_id: str) -> ApiCategory:
        category_id = validate_uuid(category_id, "Invalid category ID format")

        async def load():
            category = await category_repo.get_by_id(category_id)
            if not category:
                raise NotFoundError("Category not found")
            return self._to_api(category)

        return await cache.get_or_set(f"{CACHE_PREFIX}id:{category_id}", load)

    async def get_category_by_slug(self, slug: str) -> ApiCategory:
        async def load():
            category = await category_repo.get_by_slug(slug)
            if not category:
                raise NotFoundError("Category not found")
            return self._to_api(category)

        return await cache.get_or_set(f"{CACHE_PREFIX}slug:{slug}", load)

    async def get_category_children(self, category_id: Optional[str] = None) -> List[ApiCategory]:
        """Direct children of a category, or the root categories when no id is given"""
        if category_id is not None:
            await self._get_or_404(category_id)

        async def load():
            children = await category_repo.get_children(category_id)
            return [self._to_api(c) for c in children]

        return await cache.get_or_set(f"{CACHE_PREFIX}children:{category_id or 'root'}", load)

    async def get_descendant_ids(self, category_id: str) -> List[str]:
        return await category_repo.get_descendant_ids(category_id)

    async def create_category(self, dto: CategoryCreateRequest) -> ApiCategory:
        parent = await self._get_parent(dto.parent) if dto.parent else None
        slug = await self._resolve_slug(dto.slug, dto.name)

        category = DataCategory(
            id=generate_id(),
            name=dto.name.strip(),
            slug=slug,
            description=dto.description,
            parent_id=parent.id if parent else None,
            ancestors=build_ancestors(parent),
            image=dto.image,
            seo=dto.seo.model_dump(),
            is_active=dto.is_active,
            display_order=dto.display_order,
        )
        category = await category_repo.create(category)
        self._invalidate()
        return self._to_api(category)

    async def update_category(self, category_id: str, dto: CategoryUpdateRequest) -> ApiCategory:
        category = await self._get_or_404(category_id)
        changes = dto.model_dump(exclude_unset=True)
        path_changed = False

        if "parent" in changes:
            parent_ref = changes.pop("parent")
            if parent_ref:
                if validate_uuid(parent_ref, "Invalid parent category ID") == category.id:
                    raise ValidationError("Category cannot be its own parent")
                parent = await self._get_parent(parent_ref)
                if creates_cycle(category.id, parent):
                    raise ValidationError("Circular reference detected in category hierarchy")
            else:
                parent = None

            new_parent_id = parent.id if parent else None
            if new_parent_id != category.parent_id:
                category.parent_id = new_parent_id
                category.ancestors = build_ancestors(parent)
                path_changed = True

        requested_slug = changes.pop("slug", None)
        new_name = changes.get("name")
        if requested_slug:
            slug = await self._resolve_slug(requested_slug, category.name, exclude_id=category.id)
        elif new_name and new_name != category.name:
            slug = await self._resolve_slug(None, new_name, exclude_id=category.id)
        else:
            slug = category.slug

        if slug != category.slug or (new_name and new_name != category.name):
            path_changed = True
        category.slug = slug

        for key, value in changes.items():
            if key == "seo":
                value = value or {}
            setattr(category, key, value)

        async with db_manager.transaction() as conn:
            updated = await category_repo.update(category, conn=conn)
            if path_changed:
                descendants = await category_repo.get_descendants(updated.id, conn=conn)
                paths = {d.id: rebase_ancestors(d.ancestors, updated) for d in descendants}
                await category_repo.update_ancestors(paths, conn=conn)
                logger.info("Category subtree rebased", category_id=updated.id, descendants=len(paths))

        self._invalidate()
        return self._to_api(updated)

    async def delete_category(self, category_id: str):
        category = await self._get_or_404(category_id)
        if await category_repo.has_children(category.id):
            raise ValidationError("Cannot delete category with subcategories")
        if await category_repo.count_products(category.id) > 0:
            raise ValidationError("Cannot delete category with associated products")

        await category_repo.delete(category.id)
        self._invalidate()


category_service = CategoryService()
