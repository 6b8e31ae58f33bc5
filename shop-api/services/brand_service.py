"""
Brand Service
"""
from typing import Any, Dict, List, Optional

from data.models.brand import Brand as DataBrand
from data.repositories.brand_repository import brand_repo
from models.brand import Brand as ApiBrand, BrandCreateRequest, BrandUpdateRequest
from utils.exceptions import ConflictError, NotFoundError, ValidationError
from utils.id_generator import generate_id
from utils.logger import get_logger
from utils.pagination import build_pagination_result, get_pagination_params
from utils.validators import generate_slug, validate_uuid

logger = get_logger(__name__)

class BrandService:
    """Brand Service"""

    def _to_api(self, brand: DataBrand) -> ApiBrand:
        return ApiBrand.model_validate(brand)

    async def _get_or_404(self, brand_id: str) -> DataBrand:
        brand_id = validate_uuid(brand_id, "Invalid brand ID format")
        brand = await brand_repo.get_by_id(brand_id)
        if not brand:
            raise NotFoundError("Brand not found")
        return brand

    async def _resolve_slug(self, requested: Optional[str], name: str, exclude_id: Optional[str] = None) -> str:
        slug = generate_slug(requested or name)
        if not slug:
            raise ValidationError("Brand slug cannot be empty")
        if await brand_repo.slug_exists(slug, exclude_id):
            raise ConflictError("Brand with this slug already exists")
        return slug

    async def get_all_brands(self, is_active: Optional[bool] = None, search: Optional[str] = None,
                             page: Any = None, limit: Any = None,
                             sort_by: str = "name", sort_order: str = "asc") -> Dict[str, Any]:
        params = get_pagination_params(page, limit, default_limit=20)
        brands, total = await brand_repo.find_all(
            is_active=is_active,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=params.limit,
            offset=params.offset,
        )
        return {
            "brands": [self._to_api(brand) for brand in brands],
            "pagination": build_pagination_result(total, params.page, params.limit),
        }

    async def get_brand_by_id(self, brand_id: str) -> ApiBrand:
        return self._to_api(await self._get_or_404(brand_id))

    async def get_brand_by_slug(self, slug: str) -> ApiBrand:
        brand = await brand_repo.get_by_slug(slug)
        if not brand:
            raise NotFoundError("Brand not found")
        return self._to_api(brand)

    async def create_brand(self, dto: BrandCreateRequest) -> ApiBrand:
        slug = await self._resolve_slug(dto.slug, dto.name)
        brand = DataBrand(
            id=generate_id(),
            name=dto.name.strip(),
            slug=slug,
            description=dto.description,
            logo=dto.logo,
            website=dto.website,
            is_active=dto.is_active,
            seo=dto.seo.model_dump(),
        )
        brand = await brand_repo.create(brand)
        return self._to_api(brand)

    async def update_brand(self, brand_id: str, dto: BrandUpdateRequest) -> ApiBrand:
        brand = await self._get_or_404(brand_id)
        changes = dto.model_dump(exclude_unset=True)

        if "slug" in changes and changes["slug"]:
            brand.slug = await self._resolve_slug(changes["slug"], brand.name, exclude_id=brand.id)
        elif "name" in changes and changes["name"] != brand.name:
            # Renamed without an explicit slug: follow the new name
            brand.slug = await self._resolve_slug(None, changes["name"], exclude_id=brand.id)
        changes.pop("slug", None)

        for key, value in changes.items():
            if key == "seo":
                value = value or {}
            setattr(brand, key, value)

        brand = await brand_repo.update(brand)
        logger.info("Brand updated", brand_id=brand.id)
        return self._to_api(brand)

    async def delete_brand(self, brand_id: str):
        brand = await self._get_or_404(brand_id)
        if await brand_repo.count_products(brand.id) > 0:
            raise ValidationError("Cannot delete brand with associated products")
        await brand_repo.delete(brand.id)

    async def get_brands_with_product_counts(self) -> List[ApiBrand]:
        brands = await brand_repo.refresh_product_counts()
        return [self._to_api(brand) for brand in brands]


brand_service = BrandService()
