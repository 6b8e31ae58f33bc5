"""
Product Data Access Layer

Listing supports two paging modes over the same filter set:

* offset - ``LIMIT/OFFSET`` for numbered pages;
* keyset - ``(sort_column, id)`` compared against the boundary row of the
  previous page. Reading backwards flips the scan order and the page is
  reversed before returning, so callers always receive rows in the requested
  sort order.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from data.models.product import Product
from data.query_builder import QueryBuilder, escape_like
from data.repositories.base import BaseRepository, to_decimal, to_float
from data.repositories.category_repository import ancestor_containment
from utils.exceptions import ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

PRODUCT_COLUMNS = """
    p.id, p.name, p.slug, p.description, p.short_description, p.brand_id, p.category_id,
    p.images, p.tags, p.attributes, p.price, p.compare_at_price, p.variants, p.seo,
    p.status, p.is_published, p.is_featured, p.has_variants, p.inventory_quantity,
    p.inventory_tracking, p.reviews, p.average_rating, p.review_count, p.created_at, p.updated_at
"""

RELATION_COLUMNS = """
    c.name AS category_name, c.slug AS category_slug, c.ancestors AS category_ancestors,
    b.name AS brand_name, b.slug AS brand_slug, b.logo AS brand_logo
"""

FROM_PRODUCTS = """
    FROM products p
    LEFT JOIN categories c ON c.id = p.category_id
    LEFT JOIN brands b ON b.id = p.brand_id
"""

# Sort key -> (column, python type used to rebuild cursor values)
SORT_FIELDS: Dict[str, Tuple[str, str]] = {
    "created_at": ("p.created_at", "datetime"),
    "updated_at": ("p.updated_at", "datetime"),
    "name": ("p.name", "str"),
    "price": ("p.price", "decimal"),
    "average_rating": ("p.average_rating", "float"),
    "review_count": ("p.review_count", "int"),
    "inventory_quantity": ("p.inventory_quantity", "int"),
}

SORT_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "averageRating": "average_rating",
    "reviewCount": "review_count",
    "inventoryQuantity": "inventory_quantity",
    "rating": "average_rating",
}

FILTERABLE_ATTRIBUTES = ("color", "size", "material")

_ATTRIBUTE_KEY = re.compile(r"^[A-Za-z0-9_\-]{1,50}$")

def resolve_sort_field(sort_by: Optional[str]) -> str:
    """Map a requested sort key (snake or camel case) onto a sortable column key"""
    key = SORT_ALIASES.get(sort_by or "created_at", sort_by or "created_at")
    if key not in SORT_FIELDS:
        raise ValidationError(
            f"Invalid sort field '{sort_by}'. Must be one of: {', '.join(SORT_FIELDS)}"
        )
    return key

def coerce_sort_value(sort_field: str, value: Any) -> Any:
    """Give a decoded cursor value the type asyncpg expects for the column"""
    kind = SORT_FIELDS[sort_field][1]
    try:
        if kind == "datetime":
            return value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
        if kind == "decimal":
            return Decimal(str(value))
        if kind == "float":
            return float(value)
        if kind == "int":
            return int(value)
        return str(value)
    except (TypeError, ValueError, ArithmeticError):
        raise ValidationError("Invalid cursor")

@dataclass
class ProductFilter:
    """Filter set shared by every product listing"""
    category_id: Optional[str] = None
    category_ids: Optional[List[str]] = None
    brand_id: Optional[str] = None
    status: Optional[str] = None
    is_featured: Optional[bool] = None
    is_published: Optional[bool] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    min_review_count: Optional[int] = None
    color: Optional[str] = None
    size: Optional[str] = None
    material: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    search: Optional[str] = None
    exclude_id: Optional[str] = None

    @classmethod
    def storefront(cls, **kwargs) -> "ProductFilter":
        """Only products shoppers may see"""
        return cls(status="active", is_published=True, **kwargs)

def _attribute_condition(qb: QueryBuilder, key: str, value: str):
    """Match on the product attributes or on any variant's attributes"""
    qb.where(
        "(p.attributes->>{0} ILIKE {1} OR EXISTS ("
        "SELECT 1 FROM jsonb_array_elements(p.variants) v WHERE v->'attributes'->>{0} ILIKE {1}))",
        key,
        escape_like(value),
    )

def build_product_filter(filters: ProductFilter) -> QueryBuilder:
    qb = QueryBuilder()

    if filters.category_id:
        qb.where(
            "p.category_id IN (SELECT id FROM categories WHERE id = {0} OR ancestors @> {1}::jsonb)",
            filters.category_id,
            ancestor_containment(filters.category_id),
        )
    if filters.category_ids is not None:
        qb.where("p.category_id = ANY({}::uuid[])", list(filters.category_ids))

    qb.where_if(filters.brand_id, "p.brand_id = {}")
    qb.where_if(filters.status, "p.status = {}")
    qb.where_if(filters.is_featured, "p.is_featured = {}")
    qb.where_if(filters.is_published, "p.is_published = {}")
    qb.where_if(to_decimal(filters.min_price), "p.price >= {}")
    qb.where_if(to_decimal(filters.max_price), "p.price <= {}")
    qb.where_if(to_float(filters.min_rating), "p.average_rating >= {}")
    qb.where_if(filters.min_review_count, "p.review_count >= {}")
    qb.where_if(filters.exclude_id, "p.id <> {}")

    for key in FILTERABLE_ATTRIBUTES:
        value = getattr(filters, key)
        if value:
            _attribute_condition(qb, key, value)

    for key, value in (filters.attributes or {}).items():
        if key in FILTERABLE_ATTRIBUTES or value in (None, ""):
            continue
        if not _ATTRIBUTE_KEY.match(key):
            raise ValidationError(f"Invalid attribute filter '{key}'")
        _attribute_condition(qb, key, str(value))

    qb.search(filters.search, ["p.name", "p.description", "b.name"])
    return qb

@dataclass
class ProductPage:
    products: List[Product]
    total_count: int
    has_more: bool

class ProductRepository(BaseRepository):
    """Product Data Access Class"""

    def _row_to_product(self, row) -> Product:
        keys = set(row.keys())
        product = Product(
            id=str(row["id"]),
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            short_description=row["short_description"],
            brand_id=str(row["brand_id"]) if row["brand_id"] else None,
            category_id=str(row["category_id"]) if row["category_id"] else None,
            images=self._parse_json(row["images"], []),
            tags=list(row["tags"] or []),
            attributes=self._parse_json(row["attributes"], {}),
            price=to_float(row["price"]),
            compare_at_price=to_float(row["compare_at_price"]),
            variants=self._parse_json(row["variants"], []),
            seo=self._parse_json(row["seo"], {}),
            status=row["status"],
            is_published=row["is_published"],
            is_featured=row["is_featured"],
            has_variants=row["has_variants"],
            inventory_quantity=row["inventory_quantity"] or 0,
            inventory_tracking=row["inventory_tracking"],
            reviews=self._parse_json(row["reviews"], []),
            average_rating=float(row["average_rating"] or 0),
            review_count=row["review_count"] or 0,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
        if "category_name" in keys and row["category_name"] is not None:
            product.category = {
                "id": product.category_id,
                "name": row["category_name"],
                "slug": row["category_slug"],
                "ancestors": self._parse_json(row["category_ancestors"], []),
            }
        if "brand_name" in keys and row["brand_name"] is not None:
            product.brand = {
                "id": product.brand_id,
                "name": row["brand_name"],
                "slug": row["brand_slug"],
                "logo": row["brand_logo"],
            }
        return product

    def _write_args(self, product: Product) -> list:
        return [
            product.id,
            product.name,
            product.slug,
            product.description,
            product.short_description,
            product.brand_id,
            product.category_id,
            self._dump_json(product.images),
            list(product.tags or []),
            self._dump_json(product.attributes),
            to_decimal(product.price),
            to_decimal(product.compare_at_price),
            self._dump_json(product.variants),
            self._dump_json(product.seo),
            product.status,
            product.is_published,
            product.is_featured,
            product.has_variants,
            product.inventory_quantity,
            product.inventory_tracking,
            self._dump_json(product.reviews),
            product.average_rating,
            product.review_count,
        ]

    async def create(self, product: Product) -> Product:
        """Create new product"""
        try:
            async with self._acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO products (id, name, slug, description, short_description, brand_id,
                                          category_id, images, tags, attributes, price, compare_at_price,
                                          variants, seo, status, is_published, is_featured, has_variants,
                                          inventory_quantity, inventory_tracking, reviews, average_rating,
                                          review_count)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16,
                            $17, $18, $19, $20, $21, $22, $23)
                    """,
                    *self._write_args(product)
                )

            logger.info("Product created", product_id=product.id, slug=product.slug)
            return await self.get_by_id(product.id)

        except Exception as e:
            logger.error("Failed to create product", error=str(e), slug=product.slug)
            raise

    async def update(self, product: Product, conn=None) -> Product:
        try:
            async with self._acquire(conn) as conn:
                await conn.execute(
                    """
                    UPDATE products
                    SET name = $2, slug = $3, description = $4, short_description = $5, brand_id = $6,
                        category_id = $7, images = $8, tags = $9, attributes = $10, price = $11,
                        compare_at_price = $12, variants = $13, seo = $14, status = $15,
                        is_published = $16, is_featured = $17, has_variants = $18,
                        inventory_quantity = $19, inventory_tracking = $20, reviews = $21,
                        average_rating = $22, review_count = $23
                    WHERE id = $1
                    """,
                    *self._write_args(product)
                )
                updated = await self.get_by_id(product.id, conn=conn)

            logger.debug("Product updated", product_id=product.id)
            return updated

        except Exception as e:
            logger.error("Failed to update product", error=str(e), product_id=product.id)
            raise

    async def get_by_id(self, product_id: str, conn=None, for_update: bool = False) -> Optional[Product]:
        try:
            async with self._acquire(conn) as conn:
                if for_update:
                    # Row lock only; relations are not needed inside order transactions
                    row = await conn.fetchrow(
                        f"SELECT {PRODUCT_COLUMNS} FROM products p WHERE p.id = $1 FOR UPDATE", product_id
                    )
                else:
                    row = await conn.fetchrow(
                        f"SELECT {PRODUCT_COLUMNS}, {RELATION_COLUMNS} {FROM_PRODUCTS} WHERE p.id = $1",
                        product_id
                    )
            return self._row_to_product(row) if row else None
        except Exception as e:
            logger.error("Failed to get product", error=str(e), product_id=product_id)
            raise

    async def get_by_slug(self, slug: str) -> Optional[Product]:
        try:
            async with self._acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {PRODUCT_COLUMNS}, {RELATION_COLUMNS} {FROM_PRODUCTS} WHERE p.slug = $1", slug
                )
            return self._row_to_product(row) if row else None
        except Exception as e:
            logger.error("Failed to get product by slug", error=str(e), slug=slug)
            raise

    async def get_by_ids(self, product_ids: List[str]) -> List[Product]:
        if not product_ids:
            return []
        async with self._acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {PRODUCT_COLUMNS}, {RELATION_COLUMNS} {FROM_PRODUCTS} WHERE p.id = ANY($1::uuid[])",
                list(set(product_ids))
            )
        return [self._row_to_product(row) for row in rows]

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        async with self._acquire() as conn:
            if exclude_id:
                return await conn.fetchval(
                    "SELECT EXISTS(SELECT 1 FROM products WHERE slug = $1 AND id <> $2)", slug, exclude_id
                )
            return await conn.fetchval("SELECT EXISTS(SELECT 1 FROM products WHERE slug = $1)", slug)

    async def find_page(self, filters: ProductFilter, sort_field: str = "created_at",
                        sort_order: str = "desc", limit: int = 10, offset: int = 0,
                        cursor: Optional[Tuple[Any, str]] = None,
                        direction: str = "next") -> ProductPage:
        """
        One page of products.

        With ``cursor`` set, ``offset`` is ignored and rows strictly after
        (``direction="next"``) or before (``"prev"``) the cursor row in sort
        order are returned. ``has_more`` tells whether further rows exist in
        the direction that was read.
        """
        qb = build_product_filter(filters)
        count_sql = f"SELECT COUNT(*) {FROM_PRODUCTS} {qb.where_sql()}"
        count_params = list(qb.params)

        column = SORT_FIELDS[sort_field][0]
        ascending = sort_order == "asc"
        backwards = cursor is not None and direction == "prev"
        scan_ascending = ascending != backwards

        if cursor is not None:
            value, row_id = cursor
            operator = ">" if scan_ascending else "<"
            qb.where(f"({column}, p.id) {operator} ({{}}, {{}})",
                     coerce_sort_value(sort_field, value), row_id)
            offset = 0

        order = "ASC" if scan_ascending else "DESC"
        sql = f"""
            SELECT {PRODUCT_COLUMNS}, {RELATION_COLUMNS} {FROM_PRODUCTS}
            {qb.where_sql()}
            ORDER BY {column} {order}, p.id {order}
            LIMIT ${qb.next_index} OFFSET ${qb.next_index + 1}
        """

        try:
            async with self._acquire() as conn:
                total = await conn.fetchval(count_sql, *count_params)
                rows = await conn.fetch(sql, *qb.params, limit + 1, offset)

            has_more = len(rows) > limit
            products = [self._row_to_product(row) for row in rows[:limit]]
            if backwards:
                products.reverse()
            return ProductPage(products=products, total_count=total, has_more=has_more)

        except Exception as e:
            logger.error("Failed to list products", error=str(e), sort_field=sort_field)
            raise

    async def find_top(self, filters: ProductFilter, order_by: str, limit: int) -> List[Product]:
        """Short unpaged lists (featured, new arrivals, best sellers, related)"""
        qb = build_product_filter(filters)
        try:
            async with self._acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {PRODUCT_COLUMNS}, {RELATION_COLUMNS} {FROM_PRODUCTS}
                    {qb.where_sql()}
                    ORDER BY {order_by}
                    LIMIT ${qb.next_index}
                    """,
                    *qb.params, limit
                )
            return [self._row_to_product(row) for row in rows]
        except Exception as e:
            logger.error("Failed to list products", error=str(e), order_by=order_by)
            raise

    async def update_inventory(self, product: Product, conn=None):
        async with self._acquire(conn) as conn:
            await conn.execute(
                "UPDATE products SET inventory_quantity = $2, variants = $3 WHERE id = $1",
                product.id,
                product.inventory_quantity,
                self._dump_json(product.variants),
            )

    async def set_flag(self, product_id: str, flag: str, value: bool) -> Optional[Product]:
        """Set is_featured / is_published"""
        if flag not in ("is_featured", "is_published"):
            raise ValueError(f"Unsupported product flag: {flag}")
        try:
            async with self._acquire() as conn:
                result = await conn.execute(f"UPDATE products SET {flag} = $2 WHERE id = $1", product_id, value)
            if self._rows_affected(result) == 0:
                return None
            return await self.get_by_id(product_id)
        except Exception as e:
            logger.error("Failed to update product flag", error=str(e), product_id=product_id, flag=flag)
            raise

    async def save_reviews(self, product: Product):
        async with self._acquire() as conn:
            await conn.execute(
                "UPDATE products SET reviews = $2, average_rating = $3, review_count = $4 WHERE id = $1",
                product.id,
                self._dump_json(product.reviews),
                product.average_rating,
                product.review_count,
            )

    async def delete(self, product_id: str) -> bool:
        try:
            async with self._acquire() as conn:
                result = await conn.execute("DELETE FROM products WHERE id = $1", product_id)

            success = self._rows_affected(result) > 0
            if success:
                logger.info("Product deleted", product_id=product_id)
            return success

        except Exception as e:
            logger.error("Failed to delete product", error=str(e), product_id=product_id)
            raise

    async def get_filter_facets(self) -> Dict[str, Any]:
        """Counts and value ranges over storefront-visible products"""
        visible = "p.status = 'active' AND p.is_published = TRUE"
        try:
            async with self._acquire() as conn:
                category_rows = await conn.fetch(
                    f"""
                    SELECT c.id, c.name, c.slug, COUNT(p.id) AS count
                    FROM products p JOIN categories c ON c.id = p.category_id
                    WHERE {visible}
                    GROUP BY c.id, c.name, c.slug
                    ORDER BY c.name
                    """
                )
                brand_rows = await conn.fetch(
                    f"""
                    SELECT b.id, b.name, b.slug, COUNT(p.id) AS count
                    FROM products p JOIN brands b ON b.id = p.brand_id
                    WHERE {visible}
                    GROUP BY b.id, b.name, b.slug
                    ORDER BY b.name
                    """
                )
                price_row = await conn.fetchrow(
                    f"SELECT MIN(p.price) AS min_price, MAX(p.price) AS max_price FROM products p WHERE {visible}"
                )

                attributes = {}
                for key in FILTERABLE_ATTRIBUTES:
                    rows = await conn.fetch(
                        f"""
                        SELECT DISTINCT value FROM (
                            SELECT p.attributes->>$1 AS value FROM products p WHERE {visible}
                            UNION
                            SELECT v->'attributes'->>$1 AS value
                            FROM products p, jsonb_array_elements(p.variants) v
                            WHERE {visible}
                        ) attribute_values
                        WHERE value IS NOT NULL AND value <> ''
                        ORDER BY value
                        """,
                        key
                    )
                    attributes[key] = [row["value"] for row in rows]

            return {
                "categories": [
                    {"id": str(r["id"]), "name": r["name"], "slug": r["slug"], "count": r["count"]}
                    for r in category_rows
                ],
                "brands": [
                    {"id": str(r["id"]), "name": r["name"], "slug": r["slug"], "count": r["count"]}
                    for r in brand_rows
                ],
                "price_range": {
                    "min": to_float(price_row["min_price"]) if price_row else None,
                    "max": to_float(price_row["max_price"]) if price_row else None,
                },
                "attributes": attributes,
            }

        except Exception as e:
            logger.error("Failed to compute product filters", error=str(e))
            raise


product_repo = ProductRepository()
