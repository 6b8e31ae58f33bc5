"""
Order Data Access Layer
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from data.models.order import NON_REVENUE_STATUSES, Order
from data.query_builder import QueryBuilder
from data.repositories.base import BaseRepository, to_decimal, to_float
from utils.logger import get_logger

logger = get_logger(__name__)

ORDER_COLUMNS = """
    id, order_number, user_id, user_snapshot, items, subtotal, shipping_cost, tax_amount,
    discount_total, total_amount, currency, status, status_history, payment_status,
    fulfillment_status, shipping, billing, coupon_code, customer_note, internal_notes,
    ip_address, metadata, created_at, updated_at
"""

SORT_FIELDS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "total_amount": "total_amount",
    "order_number": "order_number",
    "status": "status",
}

# Sales period -> to_char pattern used for grouping
PERIOD_FORMATS = {
    "DAILY": "YYYY-MM-DD",
    "WEEKLY": "IYYY-IW",
    "MONTHLY": "YYYY-MM",
}

class OrderRepository(BaseRepository):
    """Order Data Access Class"""

    def _row_to_order(self, row) -> Order:
        return Order(
            id=str(row["id"]),
            order_number=row["order_number"],
            user_id=str(row["user_id"]) if row["user_id"] else None,
            user_snapshot=self._parse_json(row["user_snapshot"], {}),
            items=self._parse_json(row["items"], []),
            subtotal=to_float(row["subtotal"]),
            shipping_cost=to_float(row["shipping_cost"]),
            tax_amount=to_float(row["tax_amount"]),
            discount_total=to_float(row["discount_total"]),
            total_amount=to_float(row["total_amount"]),
            currency=row["currency"],
            status=row["status"],
            status_history=self._parse_json(row["status_history"], []),
            payment_status=row["payment_status"],
            fulfillment_status=row["fulfillment_status"],
            shipping=self._parse_json(row["shipping"], {}),
            billing=self._parse_json(row["billing"], {}),
            coupon_code=row["coupon_code"],
            customer_note=row["customer_note"],
            internal_notes=self._parse_json(row["internal_notes"], []),
            ip_address=row["ip_address"],
            metadata=self._parse_json(row["metadata"], {}),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def create(self, order: Order, conn=None) -> Order:
        """Create new order"""
        try:
            async with self._acquire(conn) as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO orders (id, order_number, user_id, user_snapshot, items, subtotal,
                                        shipping_cost, tax_amount, discount_total, total_amount, currency,
                                        status, status_history, payment_status, fulfillment_status,
                                        shipping, billing, coupon_code, customer_note, internal_notes,
                                        ip_address, metadata)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16,
                            $17, $18, $19, $20, $21, $22)
                    RETURNING {ORDER_COLUMNS}
                    """,
                    order.id,
                    order.order_number,
                    order.user_id,
                    self._dump_json(order.user_snapshot),
                    self._dump_json(order.items),
                    to_decimal(order.subtotal),
                    to_decimal(order.shipping_cost),
                    to_decimal(order.tax_amount),
                    to_decimal(order.discount_total),
                    to_decimal(order.total_amount),
                    order.currency,
                    order.status,
                    self._dump_json(order.status_history),
                    order.payment_status,
                    order.fulfillment_status,
                    self._dump_json(order.shipping),
                    self._dump_json(order.billing),
                    order.coupon_code,
                    order.customer_note,
                    self._dump_json(order.internal_notes),
                    order.ip_address,
                    self._dump_json(order.metadata),
                )

            logger.info("Order created", order_id=order.id, order_number=order.order_number,
                        total=order.total_amount)
            return self._row_to_order(row)

        except Exception as e:
            logger.error("Failed to create order", error=str(e), order_number=order.order_number)
            raise

    async def get_by_id(self, order_id: str, conn=None, for_update: bool = False) -> Optional[Order]:
        lock = " FOR UPDATE" if for_update else ""
        try:
            async with self._acquire(conn) as conn:
                row = await conn.fetchrow(f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = $1{lock}", order_id)
            return self._row_to_order(row) if row else None
        except Exception as e:
            logger.error("Failed to get order", error=str(e), order_id=order_id)
            raise

    async def update(self, order: Order, conn=None) -> Order:
        """Persist the mutable parts of an order (status, fulfilment, shipping, notes)"""
        try:
            async with self._acquire(conn) as conn:
                row = await conn.fetchrow(
                    f"""
                    UPDATE orders
                    SET status = $2, status_history = $3, payment_status = $4, fulfillment_status = $5,
                        shipping = $6, billing = $7, internal_notes = $8, metadata = $9
                    WHERE id = $1
                    RETURNING {ORDER_COLUMNS}
                    """,
                    order.id,
                    order.status,
                    self._dump_json(order.status_history),
                    order.payment_status,
                    order.fulfillment_status,
                    self._dump_json(order.shipping),
                    self._dump_json(order.billing),
                    self._dump_json(order.internal_notes),
                    self._dump_json(order.metadata),
                )

            logger.debug("Order updated", order_id=order.id, status=order.status)
            return self._row_to_order(row) if row else order

        except Exception as e:
            logger.error("Failed to update order", error=str(e), order_id=order.id)
            raise

    async def find_all(self, status: Optional[str] = None, payment_status: Optional[str] = None,
                       fulfillment_status: Optional[str] = None, user_id: Optional[str] = None,
                       date_from: Optional[datetime] = None, date_to: Optional[datetime] = None,
                       min_total: Optional[float] = None, search: Optional[str] = None,
                       sort_by: str = "created_at", sort_order: str = "desc",
                       limit: int = 20, offset: int = 0) -> Tuple[List[Order], int]:
        qb = QueryBuilder()
        qb.where_if(status, "status = {}")
        qb.where_if(payment_status, "payment_status = {}")
        qb.where_if(fulfillment_status, "fulfillment_status = {}")
        qb.where_if(user_id, "user_id = {}")
        qb.where_if(date_from, "created_at >= {}")
        qb.where_if(date_to, "created_at <= {}")
        qb.where_if(to_decimal(min_total), "total_amount >= {}")
        qb.search(search, ["order_number", "user_snapshot->>'email'", "user_snapshot->>'name'"])

        column = SORT_FIELDS.get(sort_by, "created_at")
        direction = "ASC" if sort_order == "asc" else "DESC"
        where_sql = qb.where_sql()

        try:
            async with self._acquire() as conn:
                total = await conn.fetchval(f"SELECT COUNT(*) FROM orders {where_sql}", *qb.params)
                rows = await conn.fetch(
                    f"""
                    SELECT {ORDER_COLUMNS} FROM orders {where_sql}
                    ORDER BY {column} {direction}, id {direction}
                    LIMIT ${qb.next_index} OFFSET ${qb.next_index + 1}
                    """,
                    *qb.params, limit, offset
                )
            return [self._row_to_order(row) for row in rows], total

        except Exception as e:
            logger.error("Failed to list orders", error=str(e))
            raise

    async def get_dashboard_stats(self, recent_limit: int = 5) -> Dict[str, Any]:
        try:
            async with self._acquire() as conn:
                total_sales = await conn.fetchval(
                    "SELECT COALESCE(SUM(total_amount), 0) FROM orders WHERE status <> ALL($1::text[])",
                    list(NON_REVENUE_STATUSES)
                )
                total_orders = await conn.fetchval("SELECT COUNT(*) FROM orders")
                status_rows = await conn.fetch("SELECT status, COUNT(*) AS count FROM orders GROUP BY status")
                payment_rows = await conn.fetch(
                    "SELECT payment_status, COUNT(*) AS count FROM orders GROUP BY payment_status"
                )
                recent_rows = await conn.fetch(
                    f"SELECT {ORDER_COLUMNS} FROM orders ORDER BY created_at DESC LIMIT $1", recent_limit
                )

            return {
                "total_sales": to_float(total_sales),
                "total_orders": total_orders,
                "status_counts": {row["status"]: row["count"] for row in status_rows},
                "payment_status_counts": {row["payment_status"]: row["count"] for row in payment_rows},
                "recent_orders": [self._row_to_order(row) for row in recent_rows],
            }

        except Exception as e:
            logger.error("Failed to compute order dashboard", error=str(e))
            raise

    async def get_sales_by_period(self, period: str, since: datetime) -> List[Dict[str, Any]]:
        """Revenue and order counts grouped by day, ISO week or month since ``since``"""
        pattern = PERIOD_FORMATS[period]
        try:
            async with self._acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT to_char(created_at, '{pattern}') AS bucket,
                           SUM(total_amount) AS total_sales,
                           COUNT(*) AS order_count
                    FROM orders
                    WHERE created_at >= $1 AND status <> ALL($2::text[])
                    GROUP BY bucket
                    ORDER BY bucket ASC
                    """,
                    since,
                    list(NON_REVENUE_STATUSES)
                )
            return [
                {"date": row["bucket"], "total_sales": to_float(row["total_sales"]), "order_count": row["order_count"]}
                for row in rows
            ]

        except Exception as e:
            logger.error("Failed to compute sales stats", error=str(e), period=period)
            raise


order_repo = OrderRepository()
