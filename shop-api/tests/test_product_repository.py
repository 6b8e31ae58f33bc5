"""
Product repository: keyset paging SQL and row mapping against a scripted connection
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from data.repositories.product_repository import ProductFilter, product_repo

CURSOR_ID = str(uuid.UUID(int=5))


class Record(dict):
    """Mimics asyncpg.Record, whose keys() is a one-shot iterator"""

    def keys(self):
        return iter(list(super().keys()))


def product_row(n: int, **overrides) -> Record:
    # Relation columns first so mapping cannot rely on column order
    row = {
        "brand_name": None,
        "brand_slug": None,
        "brand_logo": None,
        "category_name": None,
        "category_slug": None,
        "category_ancestors": None,
        "id": uuid.UUID(int=n),
        "name": f"p{n}",
        "slug": f"p{n}",
        "description": "Cashmere",
        "short_description": None,
        "brand_id": None,
        "category_id": uuid.UUID(int=1000 + n),
        "images": "[]",
        "tags": [],
        "attributes": "{}",
        "price": Decimal("100.00") + n,
        "compare_at_price": None,
        "variants": "[]",
        "seo": "{}",
        "status": "active",
        "is_published": True,
        "is_featured": False,
        "has_variants": False,
        "inventory_quantity": 1,
        "inventory_tracking": True,
        "reviews": "[]",
        "average_rating": 0,
        "review_count": 0,
        "created_at": datetime(2024, 1, n, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 1, n, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return Record(row)


def flat(sql: str) -> str:
    return " ".join(sql.split())


class TestFindPage:

    @pytest.fixture
    def conn(self, fake_connection):
        fake_connection.fetchval.return_value = 8
        return fake_connection

    def emitted(self, conn):
        args = conn.fetch.await_args.args
        return flat(args[0]), list(args[1:])

    async def test_next_page_descending(self, conn):
        conn.fetch.return_value = [product_row(4), product_row(3), product_row(2)]
        boundary = datetime(2024, 1, 5, tzinfo=timezone.utc)

        page = await product_repo.find_page(ProductFilter.storefront(), "created_at", "desc",
                                            limit=2, cursor=(boundary, CURSOR_ID))

        sql, params = self.emitted(conn)
        assert "(p.created_at, p.id) < ($3, $4)" in sql
        assert "ORDER BY p.created_at DESC, p.id DESC" in sql
        assert params == ["active", True, boundary, CURSOR_ID, 3, 0]
        assert [p.name for p in page.products] == ["p4", "p3"]
        assert page.has_more is True
        assert page.total_count == 8

    async def test_next_page_ascending(self, conn):
        conn.fetch.return_value = [product_row(6), product_row(7)]

        page = await product_repo.find_page(ProductFilter.storefront(), "price", "asc",
                                            limit=2, cursor=("105.00", CURSOR_ID))

        sql, params = self.emitted(conn)
        assert "(p.price, p.id) > ($3, $4)" in sql
        assert "ORDER BY p.price ASC, p.id ASC" in sql
        assert params[2] == Decimal("105.00")
        assert [p.name for p in page.products] == ["p6", "p7"]
        assert page.has_more is False

    async def test_previous_page_descending(self, conn):
        # Scanned upwards from the cursor, handed back in descending order
        conn.fetch.return_value = [product_row(6), product_row(7), product_row(8)]
        boundary = datetime(2024, 1, 5, tzinfo=timezone.utc)

        page = await product_repo.find_page(ProductFilter.storefront(), "created_at", "desc",
                                            limit=2, cursor=(boundary, CURSOR_ID), direction="prev")

        sql, _ = self.emitted(conn)
        assert "(p.created_at, p.id) > ($3, $4)" in sql
        assert "ORDER BY p.created_at ASC, p.id ASC" in sql
        assert [p.name for p in page.products] == ["p7", "p6"]
        assert page.has_more is True

    async def test_previous_page_ascending(self, conn):
        conn.fetch.return_value = [product_row(4), product_row(3)]

        page = await product_repo.find_page(ProductFilter.storefront(), "price", "asc",
                                            limit=2, cursor=("105.00", CURSOR_ID), direction="prev")

        sql, _ = self.emitted(conn)
        assert "(p.price, p.id) < ($3, $4)" in sql
        assert "ORDER BY p.price DESC, p.id DESC" in sql
        assert [p.name for p in page.products] == ["p3", "p4"]
        assert page.has_more is False

    async def test_total_ignores_cursor(self, conn):
        await product_repo.find_page(ProductFilter.storefront(), "created_at", "desc", limit=2,
                                     cursor=(datetime(2024, 1, 5, tzinfo=timezone.utc), CURSOR_ID))

        count_sql, *count_params = conn.fetchval.await_args.args
        assert "p.id) <" not in count_sql
        assert count_params == ["active", True]

    async def test_offset_mode(self, conn):
        await product_repo.find_page(ProductFilter(), "name", "asc", limit=10, offset=20)

        sql, params = self.emitted(conn)
        assert "p.id) >" not in sql
        assert "ORDER BY p.name ASC, p.id ASC" in sql
        assert "LIMIT $1 OFFSET $2" in sql
        assert params == [11, 20]

    async def test_cursor_overrides_offset(self, conn):
        await product_repo.find_page(ProductFilter(), "created_at", "desc", limit=10, offset=20,
                                     cursor=(datetime(2024, 1, 5, tzinfo=timezone.utc), CURSOR_ID))

        _, params = self.emitted(conn)
        assert params[-2:] == [11, 0]


class TestRowMapping:

    async def test_relations_are_attached(self, fake_connection):
        fake_connection.fetchrow.return_value = product_row(
            1,
            brand_id=uuid.UUID(int=77),
            brand_name="Maison",
            brand_slug="maison",
            category_name="Scarves",
            category_slug="scarves",
            category_ancestors='[{"id": "root", "name": "Women", "slug": "women"}]',
        )

        product = await product_repo.get_by_id(str(uuid.UUID(int=1)))

        assert product.brand == {"id": str(uuid.UUID(int=77)), "name": "Maison", "slug": "maison", "logo": None}
        assert product.category["name"] == "Scarves"
        assert product.category["ancestors"][0]["slug"] == "women"
        assert product.price == 101.0

    async def test_missing_relations(self, fake_connection):
        fake_connection.fetchrow.return_value = product_row(1)
        product = await product_repo.get_by_id(str(uuid.UUID(int=1)))
        assert product.brand is None
        assert product.category is None
