"""
Order Service

Checkout runs in a single transaction: product rows are locked, stock is
checked and decremented, the order is written and the customer's purchase
statistics are updated. Cancelling puts the stock back the same way.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from data.database import db_manager
from data.models.order import Order as DataOrder, build_order_item, calculate_totals
from data.models.product import Product as DataProduct
from data.models.user import User as DataUser
from data.repositories.order_repository import PERIOD_FORMATS, order_repo
from data.repositories.product_repository import product_repo
from models.order import (
    NoteRequest,
    Order as ApiOrder,
    OrderCreateRequest,
    OrderDashboard,
    SalesStat,
    TrackingRequest,
)
from services.user_service import user_service
from utils.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from utils.id_generator import generate_id, generate_order_number
from utils.logger import get_logger
from utils.pagination import build_pagination_result, get_pagination_params
from utils.time_utils import months_ago, now
from utils.validators import is_valid_uuid, validate_uuid

logger = get_logger(__name__)

DAILY_WINDOW_DAYS = 30
WEEKLY_WINDOW_DAYS = 84
MONTHLY_WINDOW_MONTHS = 12

class OrderService:
    """Order Service"""

    def _to_api(self, order: DataOrder, with_transitions: bool = False) -> ApiOrder:
        result = ApiOrder.model_validate(order)
        if with_transitions:
            result.valid_next_statuses = order.valid_next_statuses()
        return result

    async def _get_or_404(self, order_id: str, conn=None, for_update: bool = False) -> DataOrder:
        order_id = validate_uuid(order_id, "Invalid order ID format")
        order = await order_repo.get_by_id(order_id, conn=conn, for_update=for_update)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def _check_transition(self, order: DataOrder, new_status: str):
        if not order.can_transition_to(new_status):
            raise ValidationError(f"Invalid status transition from '{order.status}' to '{new_status}'")

    async def _lock_product(self, product_id: str, locked: Dict[str, DataProduct], conn) -> Optional[DataProduct]:
        """Lock each product row once per transaction so repeated lines share one stock count"""
        if product_id not in locked:
            product = None
            if is_valid_uuid(product_id):
                product = await product_repo.get_by_id(product_id, conn=conn, for_update=True)
            if not product:
                return None
            locked[product_id] = product
        return locked[product_id]

    def _reserve_stock(self, product: DataProduct, variant: Optional[Dict[str, Any]], quantity: int):
        if not product.inventory_tracking:
            return
        if variant is not None:
            available = int(variant.get("inventory_quantity") or 0)
            if available < quantity:
                raise ValidationError(
                    f"Not enough inventory for {product.name} ({variant.get('name')}). "
                    f"Available: {available}"
                )
            variant["inventory_quantity"] = available - quantity
        else:
            if product.inventory_quantity < quantity:
                raise ValidationError(
                    f"Not enough inventory for {product.name}. Available: {product.inventory_quantity}"
                )
            product.inventory_quantity -= quantity

    async def create_order(self, dto: OrderCreateRequest, user: DataUser,
                           ip_address: Optional[str] = None) -> ApiOrder:
        if not dto.products:
            raise ValidationError("Order must contain at least one product")

        async with db_manager.transaction() as conn:
            locked: Dict[str, DataProduct] = {}
            items = []

            for line in dto.products:
                product = await self._lock_product(line.product_id, locked, conn)
                if not product:
                    raise NotFoundError(f"Product with ID {line.product_id} not found")
                if not product.is_published:
                    raise ValidationError(f"Product {product.name} is not available for purchase")

                variant = None
                if line.variant_id:
                    if not product.has_variants:
                        raise ValidationError(f"Product {product.name} does not have variants")
                    variant = product.find_variant(line.variant_id)
                    if not variant:
                        raise NotFoundError(f"Variant with ID {line.variant_id} not found for {product.name}")
                elif product.has_variants:
                    raise ValidationError(f"Must specify a variant for product {product.name}")

                self._reserve_stock(product, variant, line.quantity)
                items.append(build_order_item(product, variant, line.quantity))

            order = DataOrder(
                id=generate_id(),
                order_number=generate_order_number(),
                user_id=user.id,
                user_snapshot={"email": user.email, "name": user.full_name},
                items=items,
                payment_status="paid",
                shipping={
                    "method": dto.shipping.method,
                    "cost": dto.shipping.cost,
                    "address": dto.shipping.address.model_dump(),
                },
                billing=dto.billing.model_dump(),
                coupon_code=dto.coupon_code,
                customer_note=dto.customer_note,
                ip_address=ip_address,
            )
            order.apply_totals(calculate_totals(items, dto.shipping.cost, dto.tax_amount, dto.discount_total))
            order.record_status("pending", "Order created", user.id)

            for product in locked.values():
                await product_repo.update_inventory(product, conn=conn)
            created = await order_repo.create(order, conn=conn)
            await user_service.update_customer_data(user.id, created.total_amount, conn=conn)

        logger.info("Order placed", order_number=created.order_number, user_id=user.id,
                    items=len(items), total=created.total_amount)
        return self._to_api(created)

    async def get_all_orders(self, status: Optional[str] = None, payment_status: Optional[str] = None,
                             fulfillment_status: Optional[str] = None, user_id: Optional[str] = None,
                             date_from: Optional[datetime] = None, date_to: Optional[datetime] = None,
                             min_total: Optional[float] = None, search: Optional[str] = None,
                             page: Any = None, limit: Any = None, sort_by: str = "created_at",
                             sort_order: str = "desc") -> Dict[str, Any]:
        params = get_pagination_params(page, limit, default_limit=20)
        if user_id:
            user_id = validate_uuid(user_id, "Invalid user ID format")

        orders, total = await order_repo.find_all(
            status=status,
            payment_status=payment_status,
            fulfillment_status=fulfillment_status,
            user_id=user_id,
            date_from=date_from,
            date_to=date_to,
            min_total=min_total,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=params.limit,
            offset=params.offset,
        )
        return {
            "orders": [self._to_api(order) for order in orders],
            "pagination": build_pagination_result(total, params.page, params.limit),
        }

    async def get_user_orders(self, user: DataUser, status: Optional[str] = None,
                              page: Any = None, limit: Any = None) -> Dict[str, Any]:
        params = get_pagination_params(page, limit, default_limit=10)
        orders, total = await order_repo.find_all(
            status=status, user_id=user.id, limit=params.limit, offset=params.offset
        )
        return {
            "orders": [self._to_api(order) for order in orders],
            "pagination": build_pagination_result(total, params.page, params.limit),
        }

    async def get_order_by_id(self, order_id: str, user: DataUser) -> ApiOrder:
        order = await self._get_or_404(order_id)
        if not user.is_admin and order.user_id != user.id:
            raise PermissionDeniedError("You do not have permission to view this order")
        return self._to_api(order, with_transitions=True)

    async def update_order_status(self, order_id: str, status: str, comment: Optional[str],
                                  actor: DataUser) -> ApiOrder:
        async with db_manager.transaction() as conn:
            order = await self._get_or_404(order_id, conn=conn, for_update=True)
            self._check_transition(order, status)

            previous = order.status
            order.record_status(status, comment, actor.id)
            if status in ("shipped", "delivered"):
                order.fulfillment_status = "fulfilled"
            elif status == "cancelled":
                order.fulfillment_status = "unfulfilled"

            updated = await order_repo.update(order, conn=conn)

        logger.info("Order status changed", order_id=updated.id, from_status=previous, to_status=status)
        return self._to_api(updated, with_transitions=True)

    async def add_order_tracking(self, order_id: str, dto: TrackingRequest, actor: DataUser) -> ApiOrder:
        async with db_manager.transaction() as conn:
            order = await self._get_or_404(order_id, conn=conn, for_update=True)
            self._check_transition(order, "shipped")

            order.shipping.update({
                "carrier": dto.carrier,
                "tracking_number": dto.tracking_number,
                "estimated_delivery": dto.estimated_delivery.isoformat() if dto.estimated_delivery else None,
            })
            if order.fulfillment_status == "unfulfilled":
                order.fulfillment_status = "fulfilled"
                order.record_status(
                    "shipped", f"Shipped via {dto.carrier} with tracking number {dto.tracking_number}", actor.id
                )

            updated = await order_repo.update(order, conn=conn)

        logger.info("Tracking added", order_id=updated.id, carrier=dto.carrier)
        return self._to_api(updated, with_transitions=True)

    async def _restore_stock(self, order: DataOrder, conn):
        locked: Dict[str, DataProduct] = {}
        for item in order.items:
            product = await self._lock_product(item["product_id"], locked, conn)
            if not product or not product.inventory_tracking:
                continue
            quantity = int(item["quantity"])
            variant = product.find_variant(item.get("variant_id"))
            if variant is not None:
                variant["inventory_quantity"] = int(variant.get("inventory_quantity") or 0) + quantity
            elif not item.get("variant_id"):
                product.inventory_quantity += quantity

        for product in locked.values():
            await product_repo.update_inventory(product, conn=conn)

    async def cancel_order(self, order_id: str, reason: Optional[str], user: DataUser) -> ApiOrder:
        async with db_manager.transaction() as conn:
            order = await self._get_or_404(order_id, conn=conn, for_update=True)
            if not user.is_admin and order.user_id != user.id:
                raise PermissionDeniedError("You do not have permission to cancel this order")
            self._check_transition(order, "cancelled")

            order.record_status("cancelled", reason or "Cancelled by user", user.id)
            order.fulfillment_status = "unfulfilled"
            await self._restore_stock(order, conn)
            updated = await order_repo.update(order, conn=conn)

        logger.info("Order cancelled", order_id=updated.id, cancelled_by=user.id)
        return self._to_api(updated, with_transitions=True)

    async def add_order_note(self, order_id: str, dto: NoteRequest, actor: DataUser) -> ApiOrder:
        async with db_manager.transaction() as conn:
            order = await self._get_or_404(order_id, conn=conn, for_update=True)
            order.internal_notes.append({
                "note": dto.note,
                "created_by": actor.id,
                "created_at": now().isoformat(),
            })
            updated = await order_repo.update(order, conn=conn)
        return self._to_api(updated, with_transitions=True)

    async def get_orders_dashboard(self) -> OrderDashboard:
        stats = await order_repo.get_dashboard_stats(recent_limit=5)
        stats["recent_orders"] = [self._to_api(order) for order in stats["recent_orders"]]
        return OrderDashboard(**stats)

    async def get_sales_stats(self, period: str = "DAILY") -> List[SalesStat]:
        period = (period or "").upper()
        if period == "DAILY":
            since = now() - timedelta(days=DAILY_WINDOW_DAYS)
        elif period == "WEEKLY":
            since = now() - timedelta(days=WEEKLY_WINDOW_DAYS)
        elif period == "MONTHLY":
            since = months_ago(MONTHLY_WINDOW_MONTHS)
        else:
            raise ValidationError(f"Invalid period. Must be one of: {', '.join(PERIOD_FORMATS)}")

        rows = await order_repo.get_sales_by_period(period, since)
        return [SalesStat(**row) for row in rows]


order_service = OrderService()
