"""
Order Repository - Data Access Layer for Orders

Orders are a read-mostly cache of Shopify; the only writes come from the
order pull (delete-missing + upsert).
"""
from typing import List, Optional, Dict, Any, Iterable, Tuple
from psycopg2.extras import Json

from storefront_admin.domain.order import Order, OrderCustomer, OrderLineItem
from storefront_admin.core.database import (
    ConnectionFactory,
    get_db_connection_dict_with_retry,
    new_id,
    utcnow,
)

ORDER_COLUMNS = """
    id, external_id, order_number, customer, total_price, currency,
    payment_status, fulfillment_status, line_items, created_at, updated_at
"""


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    Returns Order domain models with embedded customer and line items.
    """

    def __init__(self, connection_factory: ConnectionFactory = get_db_connection_dict_with_retry):
        self._connect = connection_factory

    @staticmethod
    def _map_row_to_order(row: dict) -> Order:
        customer = row.get('customer')
        return Order(
            id=row['id'],
            external_id=row['external_id'],
            order_number=str(row['order_number']),
            customer=OrderCustomer(**customer) if customer else None,
            total_price=row['total_price'],
            currency=row['currency'],
            payment_status=row['payment_status'],
            fulfillment_status=row['fulfillment_status'],
            line_items=[OrderLineItem(**item) for item in row.get('line_items') or []],
            created_at=row['created_at'],
            updated_at=row.get('updated_at')
        )

    def find_all(
        self,
        payment_status: Optional[str] = None,
        fulfillment_status: Optional[str] = None,
    ) -> List[Order]:
        """
        Find cached orders, newest first

        Args:
            payment_status: Filter by financial status
            fulfillment_status: Filter by fulfillment status
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if payment_status:
                conditions.append("payment_status = %s")
                params.append(payment_status)

            if fulfillment_status:
                conditions.append("fulfillment_status = %s")
                params.append(fulfillment_status)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE {where_clause}
                ORDER BY created_at DESC
            """, params)

            return [self._map_row_to_order(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, order_id: str) -> Optional[Order]:
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE id = %s
            """, (order_id,))

            row = cursor.fetchone()
            return self._map_row_to_order(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def delete_missing_external(self, external_ids: Iterable[str]) -> int:
        """Delete cached orders no longer present on Shopify"""
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM orders
                WHERE NOT (external_id = ANY(%s::text[]))
            """, (list(external_ids),))
            deleted = cursor.rowcount
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def upsert_by_external_id(self, data: Dict[str, Any]) -> Tuple[Order, bool]:
        """
        Insert or overwrite the cached copy of a Shopify order

        The local id survives the overwrite so links to /api/orders/{id}
        stay valid across pulls.

        Returns:
            Tuple of (stored order, True if a new row was inserted)
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO orders (
                    id, external_id, order_number, customer, total_price, currency,
                    payment_status, fulfillment_status, line_items, created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (external_id) DO UPDATE SET
                    order_number = EXCLUDED.order_number,
                    customer = EXCLUDED.customer,
                    total_price = EXCLUDED.total_price,
                    currency = EXCLUDED.currency,
                    payment_status = EXCLUDED.payment_status,
                    fulfillment_status = EXCLUDED.fulfillment_status,
                    line_items = EXCLUDED.line_items,
                    created_at = EXCLUDED.created_at,
                    updated_at = EXCLUDED.updated_at
                RETURNING {ORDER_COLUMNS}, (xmax = 0) AS inserted
            """, (
                new_id(),
                data['external_id'],
                str(data['order_number']),
                Json(data['customer']) if data.get('customer') else None,
                data.get('total_price', 0),
                data['currency'],
                data.get('payment_status') or 'pending',
                data.get('fulfillment_status') or 'unfulfilled',
                Json(data.get('line_items') or []),
                data.get('created_at') or utcnow(),
                data.get('updated_at'),
            ))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_order(row), bool(row['inserted'])

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def get_stats(self) -> dict:
        """Order count and revenue grouped by currency"""
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT currency, COUNT(*) as orders, COALESCE(SUM(total_price), 0) as revenue
                FROM orders
                GROUP BY currency
                ORDER BY currency
            """)
            rows = cursor.fetchall()

            return {
                'total_orders': sum(row['orders'] for row in rows),
                'revenue_by_currency': {row['currency']: float(row['revenue']) for row in rows},
            }

        finally:
            cursor.close()
            conn.close()
