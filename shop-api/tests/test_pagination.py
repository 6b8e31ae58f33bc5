"""
Offset and cursor pagination helpers
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from utils.exceptions import ValidationError
from utils.pagination import (
    build_pagination_result,
    decode_cursor,
    encode_cursor,
    get_pagination_params,
)


class TestPaginationParams:

    def test_defaults_when_missing(self):
        params = get_pagination_params()
        assert (params.page, params.limit, params.offset) == (1, 50, 0)

    def test_offset_from_page(self):
        params = get_pagination_params("3", "20")
        assert params.offset == 40

    def test_junk_and_non_positive_values_fall_back(self):
        params = get_pagination_params("abc", "-5", default_limit=10)
        assert params.page == 1
        assert params.limit == 10

    def test_limit_is_clamped(self):
        assert get_pagination_params(1, 500).limit == 100
        assert get_pagination_params(1, 500, max_limit=30).limit == 30


class TestPaginationResult:

    def test_page_counts(self):
        result = build_pagination_result(45, 2, 20)
        assert result["total_pages"] == 3
        assert result["has_next_page"] is True
        assert result["has_prev_page"] is True
        assert "links" not in result

    def test_last_page_has_no_next(self):
        result = build_pagination_result(40, 2, 20)
        assert result["has_next_page"] is False

    def test_empty_result(self):
        result = build_pagination_result(0, 1, 20)
        assert result["total_pages"] == 0
        assert result["has_next_page"] is False
        assert result["has_prev_page"] is False

    def test_links_on_first_page(self):
        result = build_pagination_result(120, 1, 50, "/api/v1/categories", {"search": "bag"})
        links = result["links"]
        assert links["first"] == "/api/v1/categories?search=bag&page=1&limit=50"
        assert links["last"] == "/api/v1/categories?search=bag&page=3&limit=50"
        assert links["next"].endswith("page=2&limit=50")
        assert "prev" not in links

    def test_links_skip_empty_query_values(self):
        result = build_pagination_result(10, 1, 5, "/api/v1/categories", {"search": None, "page": 9})
        assert result["links"]["first"] == "/api/v1/categories?page=1&limit=5"


class TestCursor:

    def test_datetime_cursor(self):
        created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        cursor = encode_cursor(created, "abc")
        assert "=" not in cursor
        assert decode_cursor(cursor) == (created, "abc")

    def test_decimal_cursor_keeps_precision(self):
        value, row_id = decode_cursor(encode_cursor(Decimal("1999.95"), "p1"))
        assert value == Decimal("1999.95")
        assert row_id == "p1"

    @pytest.mark.parametrize("cursor", ["not-a-cursor", "e30", "!!!"])
    def test_malformed_cursor(self, cursor):
        with pytest.raises(ValidationError, match="Invalid cursor"):
            decode_cursor(cursor)
