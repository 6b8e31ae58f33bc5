"""
User, product and brand service behaviour with the repositories patched out
"""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from conftest import make_product, make_user, new_id
from data.repositories.brand_repository import brand_repo
from data.repositories.product_repository import ProductFilter, ProductPage, product_repo
from data.repositories.user_repository import user_repo
from models.user import LoginRequest, RegisterRequest
from services.brand_service import brand_service
from services.email_service import email_service
from services.product_service import product_service
from services.user_service import user_service
from utils.cache import cache
from utils.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from utils.pagination import decode_cursor, encode_cursor
from utils.security import hash_password, hash_reset_token
from utils.time_utils import now


class TestUserService:

    @pytest.fixture
    def users(self, monkeypatch):
        mocks = {
            "get_by_email": AsyncMock(return_value=None),
            "get_by_username": AsyncMock(return_value=None),
            "create": AsyncMock(side_effect=lambda u: u),
            "update": AsyncMock(side_effect=lambda u, conn=None: u),
            "touch_last_login": AsyncMock(),
        }
        for name, mock in mocks.items():
            monkeypatch.setattr(user_repo, name, mock)
        return mocks

    async def test_register_issues_token(self, users):
        result = await user_service.register_user(RegisterRequest(
            username="jdoe", email="Jane@Example.com", password="s3cret!"
        ))
        assert result.token
        assert result.user.role == "customer"
        assert result.user.email == "jane@example.com"
        created = users["create"].await_args.args[0]
        assert created.password_hash != "s3cret!"

    async def test_register_duplicate_email(self, users):
        users["get_by_email"].return_value = make_user()
        with pytest.raises(ConflictError, match="Email already in use"):
            await user_service.register_user(RegisterRequest(
                username="jdoe", email="customer@example.com", password="s3cret!"
            ))
        users["create"].assert_not_awaited()

    async def test_login_with_wrong_password(self, users):
        users["get_by_email"].return_value = make_user(password_hash=hash_password("right-one"))
        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await user_service.login_user(LoginRequest(email="customer@example.com", password="wrong"))
        users["touch_last_login"].assert_not_awaited()

    async def test_login_deactivated_account(self, users):
        users["get_by_email"].return_value = make_user(
            password_hash=hash_password("right-one"), is_active=False
        )
        with pytest.raises(AuthenticationError, match="deactivated"):
            await user_service.login_user(LoginRequest(email="customer@example.com", password="right-one"))

    async def test_forgot_password_unknown_email_is_silent(self, users):
        await user_service.forgot_password("nobody@example.com")
        users["update"].assert_not_awaited()

    async def test_forgot_password_within_cooldown(self, users):
        users["get_by_email"].return_value = make_user(
            password_reset_requested_at=now() - timedelta(minutes=5)
        )
        await user_service.forgot_password("customer@example.com")
        users["update"].assert_not_awaited()

    async def test_forgot_password_stores_digest_and_emails_token(self, monkeypatch, users):
        user = make_user()
        users["get_by_email"].return_value = user
        send = AsyncMock()
        monkeypatch.setattr(email_service, "send_password_reset_email", send)

        await user_service.forgot_password(user.email)
        await asyncio.gather(*list(user_service._background_tasks))

        token = send.await_args.args[1]
        assert user.password_reset_token == hash_reset_token(token)
        assert user.password_reset_expires > now()
        assert user.password_reset_requested_at is not None

    async def test_reset_password_with_unknown_token(self, monkeypatch):
        monkeypatch.setattr(user_repo, "get_by_reset_token", AsyncMock(return_value=None))
        with pytest.raises(ValidationError, match="Invalid or expired token"):
            await user_service.reset_password("nope", "n3w-secret")

    async def test_wishlist_toggle(self, monkeypatch, users, customer):
        product = make_product()
        monkeypatch.setattr(product_repo, "get_by_id", AsyncMock(return_value=product))

        added = await user_service.toggle_wishlist(customer, product.id)
        assert added["in_wishlist"] is True
        assert added["wishlist"][0]["product_id"] == product.id

        removed = await user_service.toggle_wishlist(customer, product.id)
        assert removed == {"in_wishlist": False, "wishlist": []}


class TestProductListing:

    @pytest.fixture
    def page(self, monkeypatch):
        find_page = AsyncMock()
        monkeypatch.setattr(product_repo, "find_page", find_page)
        return find_page

    async def test_offset_mode(self, page):
        page.return_value = ProductPage(products=[make_product()], total_count=25, has_more=False)

        result = await product_service.get_all_products(ProductFilter.storefront(), page=3, limit=10)

        pagination = result["pagination"]
        assert pagination.total_pages == 3
        assert pagination.current_page == 3
        assert pagination.has_next_page is False
        assert pagination.has_prev_page is True
        assert page.await_args.kwargs["offset"] == 20

    async def test_cursor_mode(self, page):
        first, last = make_product(), make_product(slug="silk-scarf-2")
        page.return_value = ProductPage(products=[first, last], total_count=7, has_more=True)
        cursor = encode_cursor(now(), new_id())

        result = await product_service.get_all_products(
            ProductFilter.storefront(), sort_by="createdAt", limit=2, cursor=cursor
        )

        pagination = result["pagination"]
        assert pagination.total_pages is None
        assert pagination.total_count == 7
        assert pagination.has_next_page is True
        assert pagination.has_prev_page is True
        assert decode_cursor(pagination.next_cursor)[1] == last.id
        assert decode_cursor(pagination.prev_cursor)[1] == first.id
        assert page.await_args.kwargs["cursor"] == decode_cursor(cursor)

    async def test_backwards_cursor_reports_more_before(self, page):
        page.return_value = ProductPage(products=[make_product()], total_count=7, has_more=False)
        result = await product_service.get_all_products(
            ProductFilter.storefront(), cursor=encode_cursor(now(), new_id()), cursor_direction="prev"
        )
        assert result["pagination"].has_prev_page is False
        assert result["pagination"].has_next_page is True

    async def test_bad_cursor_direction(self, page):
        with pytest.raises(ValidationError, match="cursor_direction"):
            await product_service.get_all_products(
                ProductFilter.storefront(), cursor="abc", cursor_direction="sideways"
            )
        page.assert_not_awaited()

    async def test_admin_listing_exposes_publication_flags(self, page):
        page.return_value = ProductPage(products=[make_product(is_featured=True)], total_count=1, has_more=False)
        result = await product_service.get_all_products(ProductFilter(), admin=True)
        assert result["products"][0].is_featured is True


class TestProductService:

    async def test_unpublished_product_hidden_from_storefront(self, monkeypatch):
        product = make_product(is_published=False)
        monkeypatch.setattr(product_repo, "get_by_id", AsyncMock(return_value=product))

        with pytest.raises(NotFoundError):
            await product_service.get_product_by_id(product.id)
        result = await product_service.get_product_by_id(product.id, admin=True)
        assert result.is_published is False

    async def test_malformed_id(self):
        with pytest.raises(ValidationError, match="Invalid product ID format"):
            await product_service.get_product_by_id("42")

    async def test_variant_inventory_needs_variant_id(self, monkeypatch):
        product = make_product(has_variants=True, variants=[{"id": "v1", "inventory_quantity": 2}])
        monkeypatch.setattr(product_repo, "get_by_id", AsyncMock(return_value=product))
        with pytest.raises(ValidationError, match="Variant ID required"):
            await product_service.update_product_inventory(product.id, 5)

    async def test_inventory_is_clamped(self, monkeypatch):
        product = make_product()
        monkeypatch.setattr(product_repo, "get_by_id", AsyncMock(return_value=product))
        monkeypatch.setattr(product_repo, "update_inventory", AsyncMock())
        result = await product_service.update_product_inventory(product.id, -3)
        assert result.inventory_quantity == 0
        assert result.in_stock is False

    async def test_flag_value_required(self):
        with pytest.raises(ValidationError, match="is_featured field is required"):
            await product_service.toggle_product_featured(new_id(), None)

    async def test_review_updates_rating(self, monkeypatch):
        from models.product import ReviewCreateRequest

        product = make_product(reviews=[{"rating": 4}], average_rating=4.0, review_count=1)
        monkeypatch.setattr(product_repo, "get_by_id", AsyncMock(return_value=product))
        monkeypatch.setattr(product_repo, "save_reviews", AsyncMock())

        result = await product_service.add_product_review(
            product.id, ReviewCreateRequest(rating=5, content="Exquisite"), new_id()
        )
        assert result.review_count == 2
        assert result.average_rating == 4.5

    async def test_filters_are_cached_until_a_write(self, monkeypatch):
        facets = AsyncMock(return_value={})
        monkeypatch.setattr(product_repo, "get_filter_facets", facets)
        monkeypatch.setattr(product_repo, "get_by_id", AsyncMock(return_value=make_product()))
        monkeypatch.setattr(product_repo, "delete", AsyncMock())

        await product_service.get_available_filters()
        await product_service.get_available_filters()
        assert facets.await_count == 1

        await product_service.delete_product(new_id())
        assert cache.get("products:filters") is None


class TestBrandService:

    async def test_delete_blocked_by_products(self, monkeypatch):
        from data.models.brand import Brand

        brand = Brand(id=new_id(), name="Maison", slug="maison")
        monkeypatch.setattr(brand_repo, "get_by_id", AsyncMock(return_value=brand))
        monkeypatch.setattr(brand_repo, "count_products", AsyncMock(return_value=3))
        delete = AsyncMock()
        monkeypatch.setattr(brand_repo, "delete", delete)

        with pytest.raises(ValidationError, match="associated products"):
            await brand_service.delete_brand(brand.id)
        delete.assert_not_awaited()


class TestEmailService:

    @pytest.fixture
    def sent(self, monkeypatch):
        send = AsyncMock(return_value=True)
        monkeypatch.setattr(email_service, "send_email", send)
        return send

    async def test_reset_email_escapes_the_name(self, sent):
        await email_service.send_password_reset_email(
            "a@example.com", "tok", '<a href="https://evil.example">Click</a> Doe'
        )
        html = sent.await_args.args[2]
        assert '<a href="https://evil.example">' not in html
        assert "&lt;a href=&#34;https://evil.example&#34;&gt;Click&lt;/a&gt; Doe" in html
        assert "/reset-password/tok" in html

    async def test_confirmation_escapes_the_name(self, sent):
        await email_service.send_password_reset_confirmation("a@example.com", "<b>Jane</b>")
        html = sent.await_args.args[2]
        assert "<b>" not in html
        assert "Hello &lt;b&gt;Jane&lt;/b&gt;," in html

    async def test_greeting_falls_back_without_name(self, sent):
        await email_service.send_password_reset_confirmation("a@example.com")
        assert "Hello there," in sent.await_args.args[2]
