"""
Order state machine, totals and the checkout / cancellation flows
"""
import re
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from conftest import make_product, make_user, new_id
from data.models.order import (
    Order,
    STATE_MACHINE,
    build_order_item,
    calculate_totals,
    can_transition,
)
from data.repositories.order_repository import order_repo
from data.repositories.product_repository import product_repo
from models.order import OrderCreateRequest, TrackingRequest
from services.order_service import order_service
from services.user_service import user_service
from utils.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from utils.id_generator import generate_order_number
from utils.time_utils import months_ago, now

ADDRESS = {
    "full_name": "Jane Doe",
    "address_line1": "1 Rue de la Paix",
    "city": "Paris",
    "state": "IDF",
    "postal_code": "75002",
    "country": "France",
}


def order_request(*lines, **kwargs) -> OrderCreateRequest:
    payload = {
        "products": list(lines),
        "shipping": {"method": "express", "cost": 25.0, "address": ADDRESS},
        "billing": {"payment_method": "credit_card", "last_four_digits": "4242"},
    }
    payload.update(kwargs)
    return OrderCreateRequest(**payload)


class TestStateMachine:

    @pytest.mark.parametrize("current, new", [
        ("pending", "processing"),
        ("payment_pending", "paid"),
        ("processing", "shipped"),
        ("shipped", "delivered"),
        ("on_hold", "pending"),
        ("returned", "refunded"),
    ])
    def test_allowed(self, current, new):
        assert can_transition(current, new)

    @pytest.mark.parametrize("current, new", [
        ("pending", "shipped"),
        ("delivered", "cancelled"),
        ("cancelled", "pending"),
        ("shipped", "cancelled"),
    ])
    def test_rejected(self, current, new):
        assert not can_transition(current, new)

    def test_same_status_always_allowed(self):
        for status in STATE_MACHINE:
            assert can_transition(status, status)

    def test_terminal_states(self):
        assert Order(status="delivered").valid_next_statuses() == []
        assert Order(status="refunded").valid_next_statuses() == []


class TestTotals:

    def test_total_rounds_to_cents(self):
        items = [{"price": 19.99, "quantity": 3}, {"price": 0.1, "quantity": 2}]
        totals = calculate_totals(items, shipping_cost=5, tax_amount=1.01, discount_total=2)
        assert totals["subtotal"] == 60.17
        assert totals["total_amount"] == 64.18

    def test_line_item_uses_variant_price_and_default_image(self):
        product = make_product(
            price=100.0,
            images=[{"url": "front.jpg"}, {"url": "back.jpg", "is_default": True}],
        )
        variant = {"id": "v1", "sku": "SKU-1", "price": 120.0, "attributes": {"size": "M"}}
        item = build_order_item(product, variant, 2)
        assert item["price"] == 120.0
        assert item["item_total"] == 240.0
        assert item["product_snapshot"]["sku"] == "SKU-1"
        assert item["product_snapshot"]["image_url"] == "back.jpg"
        assert item["variant_attributes"] == {"size": "M"}

    def test_order_number_format(self):
        number = generate_order_number(36 ** 3 + 35)
        assert re.fullmatch(r"ORD-100Z-[0-9A-Z]{6}", number)


class TestCreateOrder:

    @pytest.fixture
    def repos(self, monkeypatch, fake_transaction):
        mocks = {
            "update_inventory": AsyncMock(),
            "create": AsyncMock(side_effect=lambda order, conn=None: order),
            "update_customer_data": AsyncMock(),
        }
        monkeypatch.setattr(product_repo, "update_inventory", mocks["update_inventory"])
        monkeypatch.setattr(order_repo, "create", mocks["create"])
        monkeypatch.setattr(user_service, "update_customer_data", mocks["update_customer_data"])
        return mocks

    def stock(self, monkeypatch, *products):
        by_id = {p.id: p for p in products}
        monkeypatch.setattr(
            product_repo, "get_by_id",
            AsyncMock(side_effect=lambda pid, conn=None, for_update=False: by_id.get(pid)),
        )

    async def test_checkout(self, monkeypatch, repos, customer):
        product = make_product(price=350.0, inventory_quantity=5)
        self.stock(monkeypatch, product)

        result = await order_service.create_order(
            order_request({"product_id": product.id, "quantity": 2}, tax_amount=70.0),
            customer,
        )

        assert result.subtotal == 700.0
        assert result.total_amount == 795.0
        assert result.status == "pending"
        assert result.payment_status == "paid"
        assert [h.status for h in result.status_history] == ["pending"]
        assert result.user_snapshot == {"email": customer.email, "name": "Jane Doe"}
        assert product.inventory_quantity == 3
        repos["update_inventory"].assert_awaited_once()
        repos["update_customer_data"].assert_awaited_once()
        assert repos["update_customer_data"].await_args.args[:2] == (customer.id, 795.0)

    async def test_repeated_lines_share_stock(self, monkeypatch, repos, customer):
        product = make_product(inventory_quantity=3)
        self.stock(monkeypatch, product)
        line = {"product_id": product.id, "quantity": 2}

        with pytest.raises(ValidationError, match="Not enough inventory"):
            await order_service.create_order(order_request(line, line), customer)
        repos["create"].assert_not_awaited()

    async def test_variant_stock(self, monkeypatch, repos, customer):
        product = make_product(
            has_variants=True,
            variants=[{"id": "v1", "name": "Ivory / S", "sku": "G-IV-S", "price": 900.0,
                       "inventory_quantity": 1}],
        )
        self.stock(monkeypatch, product)

        result = await order_service.create_order(
            order_request({"product_id": product.id, "variant_id": "v1", "quantity": 1}), customer
        )
        assert result.items[0].price == 900.0
        assert product.variants[0]["inventory_quantity"] == 0

    async def test_variant_required(self, monkeypatch, repos, customer):
        product = make_product(has_variants=True, variants=[{"id": "v1", "price": 1.0}])
        self.stock(monkeypatch, product)
        with pytest.raises(ValidationError, match="Must specify a variant"):
            await order_service.create_order(order_request({"product_id": product.id, "quantity": 1}), customer)

    async def test_unknown_product(self, monkeypatch, repos, customer):
        self.stock(monkeypatch)
        missing = new_id()
        with pytest.raises(NotFoundError, match=f"Product with ID {missing} not found"):
            await order_service.create_order(order_request({"product_id": missing, "quantity": 1}), customer)

    async def test_unpublished_product(self, monkeypatch, repos, customer):
        product = make_product(is_published=False)
        self.stock(monkeypatch, product)
        with pytest.raises(ValidationError, match="not available for purchase"):
            await order_service.create_order(order_request({"product_id": product.id, "quantity": 1}), customer)

    async def test_untracked_inventory_is_not_checked(self, monkeypatch, repos, customer):
        product = make_product(inventory_quantity=0, inventory_tracking=False)
        self.stock(monkeypatch, product)
        result = await order_service.create_order(
            order_request({"product_id": product.id, "quantity": 4}), customer
        )
        assert result.items[0].quantity == 4
        assert product.inventory_quantity == 0


class TestOrderLifecycle:

    @pytest.fixture
    def product(self):
        return make_product(inventory_quantity=3)

    @pytest.fixture
    def order(self, product, customer):
        order = Order(
            id=new_id(),
            order_number="ORD-TEST-000001",
            user_id=customer.id,
            items=[build_order_item(product, None, 2)],
            created_at=datetime.now(),
        )
        order.record_status("pending")
        return order

    @pytest.fixture
    def repos(self, monkeypatch, fake_transaction, order, product):
        mocks = {
            "get_order": AsyncMock(return_value=order),
            "update_order": AsyncMock(side_effect=lambda o, conn=None: o),
            "get_product": AsyncMock(return_value=product),
            "update_inventory": AsyncMock(),
        }
        monkeypatch.setattr(order_repo, "get_by_id", mocks["get_order"])
        monkeypatch.setattr(order_repo, "update", mocks["update_order"])
        monkeypatch.setattr(product_repo, "get_by_id", mocks["get_product"])
        monkeypatch.setattr(product_repo, "update_inventory", mocks["update_inventory"])
        return mocks

    async def test_owner_can_view(self, repos, order, customer):
        result = await order_service.get_order_by_id(order.id, customer)
        assert result.valid_next_statuses == ["processing", "payment_pending", "cancelled", "on_hold"]

    async def test_other_customer_cannot_view(self, repos, order):
        with pytest.raises(PermissionDeniedError):
            await order_service.get_order_by_id(order.id, make_user("customer"))

    async def test_invalid_transition(self, repos, order, admin):
        with pytest.raises(ValidationError, match="Invalid status transition from 'pending' to 'delivered'"):
            await order_service.update_order_status(order.id, "delivered", None, admin)

    async def test_status_update_records_history(self, repos, order, admin):
        await order_service.update_order_status(order.id, "processing", "Packed", admin)
        result = await order_service.update_order_status(order.id, "shipped", None, admin)
        assert result.fulfillment_status == "fulfilled"
        assert [h.status for h in result.status_history] == ["pending", "processing", "shipped"]
        assert result.status_history[1].comment == "Packed"
        assert result.status_history[1].updated_by == admin.id

    async def test_tracking_marks_shipped(self, repos, order, admin):
        order.status = "processing"
        result = await order_service.add_order_tracking(
            order.id, TrackingRequest(carrier="DHL", tracking_number="JD0001"), admin
        )
        assert result.status == "shipped"
        assert result.shipping["tracking_number"] == "JD0001"
        assert result.status_history[-1].comment == "Shipped via DHL with tracking number JD0001"

    async def test_tracking_requires_shippable_order(self, repos, order, admin):
        with pytest.raises(ValidationError):
            await order_service.add_order_tracking(
                order.id, TrackingRequest(carrier="DHL", tracking_number="JD0001"), admin
            )

    async def test_cancel_restores_stock(self, repos, order, product, customer):
        result = await order_service.cancel_order(order.id, None, customer)
        assert result.status == "cancelled"
        assert result.status_history[-1].comment == "Cancelled by user"
        assert result.fulfillment_status == "unfulfilled"
        assert product.inventory_quantity == 5
        repos["update_inventory"].assert_awaited_once()

    async def test_cannot_cancel_shipped_order(self, repos, order, customer):
        order.status = "shipped"
        with pytest.raises(ValidationError):
            await order_service.cancel_order(order.id, "Changed my mind", customer)
        repos["update_inventory"].assert_not_awaited()

    async def test_only_owner_or_admin_cancels(self, repos, order):
        with pytest.raises(PermissionDeniedError):
            await order_service.cancel_order(order.id, None, make_user("manager"))


class TestSalesStats:

    async def test_invalid_period(self):
        with pytest.raises(ValidationError, match="Invalid period"):
            await order_service.get_sales_stats("YEARLY")

    async def test_monthly_window(self, monkeypatch):
        sales = AsyncMock(return_value=[{"date": "2024-05", "total_sales": 1200.0, "order_count": 2}])
        monkeypatch.setattr(order_repo, "get_sales_by_period", sales)

        result = await order_service.get_sales_stats("monthly")

        period, since = sales.await_args.args
        assert period == "MONTHLY"
        assert since < now()
        assert result[0].order_count == 2

    @pytest.mark.parametrize("months, reference, expected", [
        (12, datetime(2024, 5, 31, 12, 0), datetime(2023, 5, 31, 12, 0)),
        (1, datetime(2024, 3, 31), datetime(2024, 2, 29)),
        (1, datetime(2023, 3, 31), datetime(2023, 2, 28)),
        (3, datetime(2024, 7, 31), datetime(2024, 4, 30)),
        (13, datetime(2024, 1, 15), datetime(2022, 12, 15)),
    ])
    def test_months_ago(self, months, reference, expected):
        assert months_ago(months, reference) == expected
