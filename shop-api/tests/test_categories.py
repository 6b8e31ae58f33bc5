"""
Category hierarchy: materialized ancestor paths and the rebuild cascade
"""
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from conftest import make_category, make_product, new_id
from data.models.category import build_ancestors, creates_cycle, rebase_ancestors
from data.repositories.category_repository import category_repo
from data.repositories.product_repository import product_repo
from models.category import CategoryCreateRequest, CategoryUpdateRequest
from services.category_service import category_service
from services.product_service import product_service
from utils.exceptions import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def tree():
    """women > bags > totes, plus a second root 'sale'"""
    women = make_category("Women")
    bags = make_category("Bags", women)
    totes = make_category("Totes", bags)
    sale = make_category("Sale")
    return {"women": women, "bags": bags, "totes": totes, "sale": sale}


class TestAncestorPaths:

    def test_root_has_empty_path(self):
        assert build_ancestors(None) == []

    def test_child_path_ends_with_parent(self, tree):
        assert [a["name"] for a in tree["totes"].ancestors] == ["Women", "Bags"]
        assert tree["totes"].ancestors[-1] == tree["bags"].ref()

    def test_cycle_detection(self, tree):
        assert creates_cycle(tree["women"].id, tree["totes"]) is True
        assert creates_cycle(tree["bags"].id, tree["bags"]) is True
        assert creates_cycle(tree["bags"].id, tree["sale"]) is False

    def test_rebase_after_rename(self, tree):
        women = tree["women"]
        women.name, women.slug = "Womenswear", "womenswear"
        path = rebase_ancestors(tree["totes"].ancestors, women)
        assert [a["slug"] for a in path] == ["womenswear", "bags"]

    def test_rebase_after_move_keeps_lower_segment(self, tree):
        bags = tree["bags"]
        bags.parent_id = tree["sale"].id
        bags.ancestors = build_ancestors(tree["sale"])
        path = rebase_ancestors(tree["totes"].ancestors, bags)
        assert [a["name"] for a in path] == ["Sale", "Bags"]

    def test_rebase_rejects_unrelated_path(self, tree):
        with pytest.raises(ValueError):
            rebase_ancestors(tree["totes"].ancestors, tree["sale"])


class TestCategoryService:

    @pytest.fixture
    def repo(self, monkeypatch, tree, fake_transaction):
        by_id = {c.id: c for c in tree.values()}
        mocks = {
            "get_by_id": AsyncMock(side_effect=lambda cid, conn=None: by_id.get(cid)),
            "slug_exists": AsyncMock(return_value=False),
            "create": AsyncMock(side_effect=lambda c: c),
            "update": AsyncMock(side_effect=lambda c, conn=None: c),
            "get_descendants": AsyncMock(return_value=[]),
            "update_ancestors": AsyncMock(),
            "has_children": AsyncMock(return_value=False),
            "count_products": AsyncMock(return_value=0),
            "delete": AsyncMock(return_value=True),
        }
        for name, mock in mocks.items():
            monkeypatch.setattr(category_repo, name, mock)
        return mocks

    async def test_create_child_materializes_path(self, repo, tree):
        result = await category_service.create_category(
            CategoryCreateRequest(name="Clutch Bags", parent=tree["bags"].id)
        )
        assert result.slug == "clutch-bags"
        assert [a.name for a in result.ancestors] == ["Women", "Bags"]
        assert result.parent.id == tree["bags"].id

    async def test_create_with_missing_parent(self, repo):
        with pytest.raises(NotFoundError, match="Parent category not found"):
            await category_service.create_category(CategoryCreateRequest(name="Orphan", parent=new_id()))

    async def test_create_with_malformed_parent(self, repo):
        with pytest.raises(ValidationError, match="Invalid parent category ID"):
            await category_service.create_category(CategoryCreateRequest(name="Orphan", parent="nope"))

    async def test_duplicate_slug(self, repo):
        repo["slug_exists"].return_value = True
        with pytest.raises(ConflictError, match="already exists"):
            await category_service.create_category(CategoryCreateRequest(name="Women"))

    async def test_rename_rebuilds_descendant_paths(self, repo, tree):
        repo["get_descendants"].return_value = [tree["bags"], tree["totes"]]

        result = await category_service.update_category(
            tree["women"].id, CategoryUpdateRequest(name="Womenswear")
        )

        assert result.slug == "womenswear"
        paths = repo["update_ancestors"].await_args.args[0]
        assert [a["slug"] for a in paths[tree["bags"].id]] == ["womenswear"]
        assert [a["slug"] for a in paths[tree["totes"].id]] == ["womenswear", "bags"]

    async def test_move_to_new_parent(self, repo, tree):
        repo["get_descendants"].return_value = [tree["totes"]]

        result = await category_service.update_category(
            tree["bags"].id, CategoryUpdateRequest(parent=tree["sale"].id)
        )

        assert [a.name for a in result.ancestors] == ["Sale"]
        paths = repo["update_ancestors"].await_args.args[0]
        assert [a["name"] for a in paths[tree["totes"].id]] == ["Sale", "Bags"]

    async def test_move_to_root(self, repo, tree):
        result = await category_service.update_category(tree["bags"].id, CategoryUpdateRequest(parent=None))
        assert result.ancestors == []
        assert result.parent is None

    async def test_description_change_skips_cascade(self, repo, tree):
        await category_service.update_category(tree["women"].id, CategoryUpdateRequest(description="New"))
        repo["get_descendants"].assert_not_awaited()

    async def test_cannot_be_own_parent(self, repo, tree):
        with pytest.raises(ValidationError, match="own parent"):
            await category_service.update_category(tree["bags"].id, CategoryUpdateRequest(parent=tree["bags"].id))

    async def test_cannot_move_under_descendant(self, repo, tree):
        with pytest.raises(ValidationError, match="Circular reference"):
            await category_service.update_category(tree["women"].id, CategoryUpdateRequest(parent=tree["totes"].id))

    async def test_delete_blocked_by_children(self, repo, tree):
        repo["has_children"].return_value = True
        with pytest.raises(ValidationError, match="subcategories"):
            await category_service.delete_category(tree["women"].id)
        repo["delete"].assert_not_awaited()

    async def test_delete_blocked_by_products(self, repo, tree):
        repo["count_products"].return_value = 2
        with pytest.raises(ValidationError, match="associated products"):
            await category_service.delete_category(tree["totes"].id)

    async def test_descendant_ids(self, monkeypatch, tree):
        ids = [tree["bags"].id, tree["totes"].id]
        lookup = AsyncMock(return_value=ids)
        monkeypatch.setattr(category_repo, "get_descendant_ids", lookup)

        assert await category_service.get_descendant_ids(tree["bags"].id) == ids
        lookup.assert_awaited_once_with(tree["bags"].id)


class TestProductCounts:

    def category_row(self, **overrides):
        row = {
            "id": uuid.uuid4(), "name": "Scarves", "slug": "scarves", "description": None,
            "parent_id": None, "ancestors": "[]", "image": None, "seo": "{}", "is_active": True,
            "display_order": 0, "products_count": 3,
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "updated_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        row.update(overrides)
        return row

    async def test_count_comes_from_products(self, fake_connection):
        fake_connection.fetchrow.return_value = self.category_row()

        category = await category_repo.get_by_id(new_id())

        sql = fake_connection.fetchrow.await_args.args[0]
        assert "FROM products p WHERE p.category_id = categories.id" in sql
        assert category.products_count == 3

    async def test_count_is_served_by_category_endpoint(self, fake_connection):
        row = self.category_row(products_count=5)
        fake_connection.fetchrow.return_value = row

        category = await category_service.get_category_by_id(str(row["id"]))

        assert category.products_count == 5

    async def test_product_writes_refresh_cached_counts(self, monkeypatch):
        category = make_category("Scarves", products_count=1)
        lookup = AsyncMock(return_value=category)
        monkeypatch.setattr(category_repo, "get_by_id", lookup)
        monkeypatch.setattr(product_repo, "get_by_id", AsyncMock(return_value=make_product()))
        monkeypatch.setattr(product_repo, "delete", AsyncMock())

        await category_service.get_category_by_id(category.id)
        await product_service.delete_product(new_id())
        await category_service.get_category_by_id(category.id)

        assert lookup.await_count == 2
