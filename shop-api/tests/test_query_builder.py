"""
SQL condition assembly and product filter translation
"""
import json
from decimal import Decimal

import pytest

from data.query_builder import QueryBuilder, escape_like
from data.repositories.product_repository import (
    ProductFilter,
    build_product_filter,
    coerce_sort_value,
    resolve_sort_field,
)
from utils.exceptions import ValidationError


class TestQueryBuilder:

    def test_placeholders_follow_parameter_order(self):
        qb = QueryBuilder()
        qb.where("status = {}", "active").where("price BETWEEN {} AND {}", 10, 20)
        assert qb.where_sql() == "WHERE status = $1 AND price BETWEEN $2 AND $3"
        assert qb.params == ["active", 10, 20]
        assert qb.next_index == 4

    def test_where_if_skips_none_but_keeps_false(self):
        qb = QueryBuilder()
        qb.where_if(None, "brand_id = {}")
        qb.where_if(False, "is_featured = {}")
        assert qb.conditions == ["is_featured = $1"]
        assert qb.params == [False]

    def test_search_reuses_one_parameter(self):
        qb = QueryBuilder()
        qb.search("50%_off", ["name", "description"])
        assert qb.where_sql() == "WHERE (name ILIKE $1 OR description ILIKE $1)"
        assert qb.params == ["%50\\%\\_off%"]

    def test_empty_builder(self):
        assert QueryBuilder().search("", ["name"]).where_sql() == ""

    def test_copy_is_independent(self):
        qb = QueryBuilder().where("a = {}", 1)
        clone = qb.copy().where("b = {}", 2)
        assert len(qb.params) == 1
        assert len(clone.params) == 2

    def test_escape_like(self):
        assert escape_like("a\\b") == "a\\\\b"


class TestProductFilter:

    def test_category_filter_covers_subtree(self):
        qb = build_product_filter(ProductFilter(category_id="c1"))
        assert "ancestors @> $2::jsonb" in qb.where_sql()
        assert qb.params[0] == "c1"
        assert json.loads(qb.params[1]) == [{"id": "c1"}]

    def test_storefront_defaults(self):
        qb = build_product_filter(ProductFilter.storefront())
        assert "p.status = $1" in qb.conditions
        assert "p.is_published = $2" in qb.conditions
        assert qb.params == ["active", True]

    def test_price_bounds_are_decimals(self):
        qb = build_product_filter(ProductFilter(min_price=100, max_price=250.5))
        assert qb.params == [Decimal("100"), Decimal("250.5")]

    def test_attribute_filters_match_variants(self):
        qb = build_product_filter(ProductFilter(color="Ivory", attributes={"finish": "matte"}))
        sql = qb.where_sql()
        assert sql.count("jsonb_array_elements(p.variants)") == 2
        assert qb.params == ["color", "Ivory", "finish", "matte"]

    def test_unsafe_attribute_key_rejected(self):
        with pytest.raises(ValidationError):
            build_product_filter(ProductFilter(attributes={"x'; DROP TABLE products;--": "1"}))

    def test_search_includes_brand_name(self):
        qb = build_product_filter(ProductFilter(search="silk"))
        assert "b.name ILIKE $1" in qb.where_sql()


class TestSortFields:

    @pytest.mark.parametrize("requested, expected", [
        (None, "created_at"),
        ("price", "price"),
        ("averageRating", "average_rating"),
        ("createdAt", "created_at"),
    ])
    def test_resolve(self, requested, expected):
        assert resolve_sort_field(requested) == expected

    def test_unknown_sort_field(self):
        with pytest.raises(ValidationError, match="Invalid sort field"):
            resolve_sort_field("password_hash")

    def test_cursor_values_are_coerced(self):
        assert coerce_sort_value("price", 12.5) == Decimal("12.5")
        assert coerce_sort_value("review_count", "3") == 3
        with pytest.raises(ValidationError):
            coerce_sort_value("created_at", "yesterday")
