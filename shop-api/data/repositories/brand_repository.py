"""
Brand Data Access Layer
"""
from typing import List, Optional, Tuple

from data.models.brand import Brand
from data.query_builder import QueryBuilder
from data.repositories.base import BaseRepository
from utils.logger import get_logger

logger = get_logger(__name__)

BRAND_COLUMNS = """
    id, name, slug, description, logo, website, is_active, seo, products_count, created_at, updated_at
"""

SORT_FIELDS = {
    "name": "name",
    "slug": "slug",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "products_count": "products_count",
}

class BrandRepository(BaseRepository):
    """Brand Data Access Class"""

    def _row_to_brand(self, row) -> Brand:
        return Brand(
            id=str(row["id"]),
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            logo=row["logo"],
            website=row["website"],
            is_active=row["is_active"],
            seo=self._parse_json(row["seo"], {}),
            products_count=row["products_count"] or 0,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def create(self, brand: Brand) -> Brand:
        """Create new brand"""
        try:
            async with self._acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO brands (id, name, slug, description, logo, website, is_active, seo)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    RETURNING {BRAND_COLUMNS}
                    """,
                    brand.id,
                    brand.name,
                    brand.slug,
                    brand.description,
                    brand.logo,
                    brand.website,
                    brand.is_active,
                    self._dump_json(brand.seo),
                )

            logger.info("Brand created", brand_id=brand.id, slug=brand.slug)
            return self._row_to_brand(row)

        except Exception as e:
            logger.error("Failed to create brand", error=str(e), slug=brand.slug)
            raise

    async def get_by_id(self, brand_id: str) -> Optional[Brand]:
        try:
            async with self._acquire() as conn:
                row = await conn.fetchrow(f"SELECT {BRAND_COLUMNS} FROM brands WHERE id = $1", brand_id)
            return self._row_to_brand(row) if row else None
        except Exception as e:
            logger.error("Failed to get brand", error=str(e), brand_id=brand_id)
            raise

    async def get_by_slug(self, slug: str) -> Optional[Brand]:
        try:
            async with self._acquire() as conn:
                row = await conn.fetchrow(f"SELECT {BRAND_COLUMNS} FROM brands WHERE slug = $1", slug)
            return self._row_to_brand(row) if row else None
        except Exception as e:
            logger.error("Failed to get brand by slug", error=str(e), slug=slug)
            raise

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        async with self._acquire() as conn:
            if exclude_id:
                return await conn.fetchval(
                    "SELECT EXISTS(SELECT 1 FROM brands WHERE slug = $1 AND id <> $2)", slug, exclude_id
                )
            return await conn.fetchval("SELECT EXISTS(SELECT 1 FROM brands WHERE slug = $1)", slug)

    async def find_all(self, is_active: Optional[bool] = None, search: Optional[str] = None,
                       sort_by: str = "name", sort_order: str = "asc",
                       limit: int = 20, offset: int = 0) -> Tuple[List[Brand], int]:
        qb = QueryBuilder()
        qb.where_if(is_active, "is_active = {}")
        qb.search(search, ["name", "slug", "description"])

        column = SORT_FIELDS.get(sort_by, "name")
        direction = "DESC" if sort_order == "desc" else "ASC"
        where_sql = qb.where_sql()

        try:
            async with self._acquire() as conn:
                total = await conn.fetchval(f"SELECT COUNT(*) FROM brands {where_sql}", *qb.params)
                rows = await conn.fetch(
                    f"""
                    SELECT {BRAND_COLUMNS} FROM brands {where_sql}
                    ORDER BY {column} {direction}, id {direction}
                    LIMIT ${qb.next_index} OFFSET ${qb.next_index + 1}
                    """,
                    *qb.params, limit, offset
                )
            return [self._row_to_brand(row) for row in rows], total

        except Exception as e:
            logger.error("Failed to list brands", error=str(e))
            raise

    async def update(self, brand: Brand) -> Brand:
        try:
            async with self._acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    UPDATE brands
                    SET name = $2, slug = $3, description = $4, logo = $5, website = $6,
                        is_active = $7, seo = $8
                    WHERE id = $1
                    RETURNING {BRAND_COLUMNS}
                    """,
                    brand.id,
                    brand.name,
                    brand.slug,
                    brand.description,
                    brand.logo,
                    brand.website,
                    brand.is_active,
                    self._dump_json(brand.seo),
                )

            logger.debug("Brand updated", brand_id=brand.id)
            return self._row_to_brand(row) if row else brand

        except Exception as e:
            logger.error("Failed to update brand", error=str(e), brand_id=brand.id)
            raise

    async def count_products(self, brand_id: str) -> int:
        async with self._acquire() as conn:
            return await conn.fetchval("SELECT COUNT(*) FROM products WHERE brand_id = $1", brand_id)

    async def refresh_product_counts(self) -> List[Brand]:
        """Recount products for every active brand and return them sorted by name"""
        try:
            async with self._acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    UPDATE brands b
                    SET products_count = (SELECT COUNT(*) FROM products p WHERE p.brand_id = b.id)
                    WHERE b.is_active = TRUE
                    RETURNING {BRAND_COLUMNS}
                    """
                )
            brands = [self._row_to_brand(row) for row in rows]
            return sorted(brands, key=lambda brand: brand.name.lower())

        except Exception as e:
            logger.error("Failed to refresh brand product counts", error=str(e))
            raise

    async def delete(self, brand_id: str) -> bool:
        try:
            async with self._acquire() as conn:
                result = await conn.execute("DELETE FROM brands WHERE id = $1", brand_id)

            success = self._rows_affected(result) > 0
            if success:
                logger.info("Brand deleted", brand_id=brand_id)
            return success

        except Exception as e:
            logger.error("Failed to delete brand", error=str(e), brand_id=brand_id)
            raise


brand_repo = BrandRepository()
