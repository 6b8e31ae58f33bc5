"""
Category Data Access Layer
"""
import json
from typing import Any, Dict, List, Optional, Tuple

from data.models.category import Category
from data.query_builder import QueryBuilder
from data.repositories.base import BaseRepository
from utils.logger import get_logger

logger = get_logger(__name__)

# products_count is the number of products assigned directly to the category
CATEGORY_COLUMNS = """
    id, name, slug, description, parent_id, ancestors, image, seo,
    is_active, display_order, created_at, updated_at,
    (SELECT COUNT(*) FROM products p WHERE p.category_id = categories.id) AS products_count
"""

SORT_FIELDS = {
    "name": "name",
    "slug": "slug",
    "display_order": "display_order",
    "created_at": "created_at",
    "updated_at": "updated_at",
}

def ancestor_containment(category_id: str) -> str:
    """JSONB value matching any ancestors array that contains ``category_id``"""
    return json.dumps([{"id": category_id}])

class CategoryRepository(BaseRepository):
    """Category Data Access Class"""

    def _row_to_category(self, row) -> Category:
        return Category(
            id=str(row["id"]),
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            parent_id=str(row["parent_id"]) if row["parent_id"] else None,
            ancestors=self._parse_json(row["ancestors"], []),
            image=row["image"],
            seo=self._parse_json(row["seo"], {}),
            is_active=row["is_active"],
            display_order=row["display_order"] or 0,
            products_count=row["products_count"] or 0,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def create(self, category: Category) -> Category:
        """Create new category"""
        try:
            async with self._acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO categories (id, name, slug, description, parent_id, ancestors, image,
                                            seo, is_active, display_order)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                    RETURNING {CATEGORY_COLUMNS}
                    """,
                    category.id,
                    category.name,
                    category.slug,
                    category.description,
                    category.parent_id,
                    self._dump_json(category.ancestors),
                    category.image,
                    self._dump_json(category.seo),
                    category.is_active,
                    category.display_order,
                )

            logger.info("Category created", category_id=category.id, slug=category.slug,
                        depth=len(category.ancestors))
            return self._row_to_category(row)

        except Exception as e:
            logger.error("Failed to create category", error=str(e), slug=category.slug)
            raise

    async def get_by_id(self, category_id: str, conn=None) -> Optional[Category]:
        try:
            async with self._acquire(conn) as conn:
                row = await conn.fetchrow(
                    f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE id = $1", category_id
                )
            return self._row_to_category(row) if row else None
        except Exception as e:
            logger.error("Failed to get category", error=str(e), category_id=category_id)
            raise

    async def get_by_slug(self, slug: str) -> Optional[Category]:
        try:
            async with self._acquire() as conn:
                row = await conn.fetchrow(f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE slug = $1", slug)
            return self._row_to_category(row) if row else None
        except Exception as e:
            logger.error("Failed to get category by slug", error=str(e), slug=slug)
            raise

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        async with self._acquire() as conn:
            if exclude_id:
                return await conn.fetchval(
                    "SELECT EXISTS(SELECT 1 FROM categories WHERE slug = $1 AND id <> $2)", slug, exclude_id
                )
            return await conn.fetchval("SELECT EXISTS(SELECT 1 FROM categories WHERE slug = $1)", slug)

    async def find_all(self, is_active: Optional[bool] = None, parent: Optional[str] = None,
                       root_only: bool = False, search: Optional[str] = None,
                       sort_by: str = "name", sort_order: str = "asc",
                       limit: int = 50, offset: int = 0) -> Tuple[List[Category], int]:
        qb = QueryBuilder()
        qb.where_if(is_active, "is_active = {}")
        if root_only:
            qb.where("parent_id IS NULL")
        else:
            qb.where_if(parent, "parent_id = {}")
        qb.search(search, ["name", "description"])

        column = SORT_FIELDS.get(sort_by, "name")
        direction = "DESC" if sort_order == "desc" else "ASC"
        where_sql = qb.where_sql()

        try:
            async with self._acquire() as conn:
                total = await conn.fetchval(f"SELECT COUNT(*) FROM categories {where_sql}", *qb.params)
                rows = await conn.fetch(
                    f"""
                    SELECT {CATEGORY_COLUMNS} FROM categories {where_sql}
                    ORDER BY {column} {direction}, id {direction}
                    LIMIT ${qb.next_index} OFFSET ${qb.next_index + 1}
                    """,
                    *qb.params, limit, offset
                )
            return [self._row_to_category(row) for row in rows], total

        except Exception as e:
            logger.error("Failed to list categories", error=str(e))
            raise

    async def get_children(self, parent_id: Optional[str]) -> List[Category]:
        """Direct children of ``parent_id``; root categories when None"""
        try:
            async with self._acquire() as conn:
                if parent_id is None:
                    rows = await conn.fetch(
                        f"""
                        SELECT {CATEGORY_COLUMNS} FROM categories
                        WHERE parent_id IS NULL
                        ORDER BY display_order ASC, name ASC
                        """
                    )
                else:
                    rows = await conn.fetch(
                        f"""
                        SELECT {CATEGORY_COLUMNS} FROM categories
                        WHERE parent_id = $1
                        ORDER BY display_order ASC, name ASC
                        """,
                        parent_id
                    )
            return [self._row_to_category(row) for row in rows]

        except Exception as e:
            logger.error("Failed to get category children", error=str(e), parent_id=parent_id)
            raise

    async def get_descendants(self, category_id: str, conn=None) -> List[Category]:
        """Every category below ``category_id`` at any depth"""
        async with self._acquire(conn) as conn:
            rows = await conn.fetch(
                f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE ancestors @> $1::jsonb",
                ancestor_containment(category_id)
            )
        return [self._row_to_category(row) for row in rows]

    async def get_descendant_ids(self, category_id: str) -> List[str]:
        """``category_id`` itself followed by the ids of its whole subtree"""
        async with self._acquire() as conn:
            rows = await conn.fetch(
                "SELECT id FROM categories WHERE ancestors @> $1::jsonb",
                ancestor_containment(category_id)
            )
        return [category_id] + [str(row["id"]) for row in rows]

    async def update(self, category: Category, conn=None) -> Category:
        try:
            async with self._acquire(conn) as conn:
                row = await conn.fetchrow(
                    f"""
                    UPDATE categories
                    SET name = $2, slug = $3, description = $4, parent_id = $5, ancestors = $6,
                        image = $7, seo = $8, is_active = $9, display_order = $10
                    WHERE id = $1
                    RETURNING {CATEGORY_COLUMNS}
                    """,
                    category.id,
                    category.name,
                    category.slug,
                    category.description,
                    category.parent_id,
                    self._dump_json(category.ancestors),
                    category.image,
                    self._dump_json(category.seo),
                    category.is_active,
                    category.display_order,
                )

            logger.debug("Category updated", category_id=category.id)
            return self._row_to_category(row) if row else category

        except Exception as e:
            logger.error("Failed to update category", error=str(e), category_id=category.id)
            raise

    async def update_ancestors(self, paths: Dict[str, List[Dict[str, Any]]], conn=None) -> int:
        """Write new ancestor paths, keyed by category id"""
        if not paths:
            return 0
        try:
            async with self._acquire(conn) as conn:
                await conn.executemany(
                    "UPDATE categories SET ancestors = $2 WHERE id = $1",
                    [(category_id, self._dump_json(ancestors)) for category_id, ancestors in paths.items()]
                )
            logger.info("Category ancestors updated", count=len(paths))
            return len(paths)

        except Exception as e:
            logger.error("Failed to update category ancestors", error=str(e))
            raise

    async def has_children(self, category_id: str) -> bool:
        async with self._acquire() as conn:
            return await conn.fetchval(
                "SELECT EXISTS(SELECT 1 FROM categories WHERE parent_id = $1)", category_id
            )

    async def count_products(self, category_id: str) -> int:
        async with self._acquire() as conn:
            return await conn.fetchval("SELECT COUNT(*) FROM products WHERE category_id = $1", category_id)

    async def delete(self, category_id: str) -> bool:
        try:
            async with self._acquire() as conn:
                result = await conn.execute("DELETE FROM categories WHERE id = $1", category_id)

            success = self._rows_affected(result) > 0
            if success:
                logger.info("Category deleted", category_id=category_id)
            return success

        except Exception as e:
            logger.error("Failed to delete category", error=str(e), category_id=category_id)
            raise


category_repo = CategoryRepository()
