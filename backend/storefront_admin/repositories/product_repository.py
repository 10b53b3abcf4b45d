"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.
"""
from typing import List, Optional, Dict, Any, Iterable, Tuple
from psycopg2.extras import Json

from storefront_admin.domain.product import Product
from storefront_admin.core.database import (
    ConnectionFactory,
    get_db_connection_dict_with_retry,
    new_id,
    utcnow,
)

PRODUCT_COLUMNS = """
    id, external_id, name, description, price, category, stock,
    image_urls, created_at, updated_at
"""

# Columns the API is allowed to write
WRITABLE_FIELDS = ('name', 'description', 'price', 'category', 'stock', 'image_urls')


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    def __init__(self, connection_factory: ConnectionFactory = get_db_connection_dict_with_retry):
        self._connect = connection_factory

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        """Helper method to map database row to Product domain model."""
        return Product(
            id=row['id'],
            external_id=row.get('external_id'),
            name=row['name'],
            description=row.get('description') or '',
            price=row['price'],
            category=row['category'],
            stock=row['stock'],
            image_urls=row.get('image_urls') or [],
            created_at=row['created_at'],
            updated_at=row.get('updated_at')
        )

    @staticmethod
    def _adapt(field: str, value: Any) -> Any:
        return Json(list(value)) if field == 'image_urls' else value

    def find_all(self) -> List[Product]:
        """All local products, newest first"""
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                ORDER BY created_at DESC
            """)
            return [self._map_row_to_product(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, product_id: str) -> Optional[Product]:
        """
        Find product by local ID

        Returns:
            Product or None if not found
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE id = %s
            """, (product_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_product(row)

        finally:
            cursor.close()
            conn.close()

    def find_by_external_id(self, external_id: str) -> Optional[Product]:
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE external_id = %s
            """, (external_id,))

            row = cursor.fetchone()
            return self._map_row_to_product(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def insert(self, data: Dict[str, Any]) -> Product:
        """
        Insert a new local (not yet mirrored) product

        Args:
            data: Validated ProductCreate fields

        Returns:
            The stored Product with its server-assigned id and timestamp
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO products (
                    id, name, description, price, category, stock,
                    image_urls, created_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {PRODUCT_COLUMNS}
            """, (
                new_id(),
                data['name'],
                data.get('description') or '',
                data['price'],
                data['category'],
                data.get('stock', 0),
                Json(list(data.get('image_urls') or [])),
                utcnow(),
            ))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row)

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def update(self, product_id: str, changes: Dict[str, Any]) -> Optional[Product]:
        """
        Apply a partial update

        Args:
            product_id: Local product ID
            changes: Subset of WRITABLE_FIELDS

        Returns:
            Updated Product or None if not found
        """
        fields = [f for f in WRITABLE_FIELDS if f in changes]
        if not fields:
            return self.find_by_id(product_id)

        assignments = ", ".join(f"{field} = %s" for field in fields)
        params = [self._adapt(field, changes[field]) for field in fields]

        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE products
                SET {assignments}, updated_at = %s
                WHERE id = %s
                RETURNING {PRODUCT_COLUMNS}
            """, params + [utcnow(), product_id])

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row) if row else None

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def restore(self, product: Product) -> Product:
        """Write back a previous snapshot (compensating action for a failed mirror)"""
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE products
                SET external_id = %s, name = %s, description = %s, price = %s,
                    category = %s, stock = %s, image_urls = %s, updated_at = %s
                WHERE id = %s
                RETURNING {PRODUCT_COLUMNS}
            """, (
                product.external_id,
                product.name,
                product.description,
                product.price,
                product.category,
                product.stock,
                Json(list(product.image_urls)),
                product.updated_at,
                product.id,
            ))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row) if row else product

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def set_external_id(self, product_id: str, external_id: Optional[str]) -> None:
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE products
                SET external_id = %s
                WHERE id = %s
            """, (external_id, product_id))
            conn.commit()

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def delete(self, product_id: str) -> bool:
        """Delete by local ID; returns False when nothing was deleted"""
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    # =========================================================================
    # Reconciliation helpers
    # =========================================================================

    def delete_missing_external(self, external_ids: Iterable[str]) -> int:
        """
        Delete mirrored products whose external_id is not in external_ids.

        Local-only products (external_id IS NULL) are kept.

        Returns:
            Number of deleted rows
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM products
                WHERE external_id IS NOT NULL
                  AND NOT (external_id = ANY(%s::text[]))
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

    def upsert_by_external_id(self, data: Dict[str, Any]) -> Tuple[Product, bool]:
        """
        Insert or overwrite the product mirrored as data['external_id']

        Returns:
            Tuple of (stored product, True if a new row was inserted)
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO products (
                    id, external_id, name, description, price, category, stock,
                    image_urls, created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (external_id) DO UPDATE SET
                    name = EXCLUDED.name,
                    description = EXCLUDED.description,
                    price = EXCLUDED.price,
                    category = EXCLUDED.category,
                    stock = EXCLUDED.stock,
                    image_urls = EXCLUDED.image_urls,
                    created_at = EXCLUDED.created_at,
                    updated_at = EXCLUDED.updated_at
                RETURNING {PRODUCT_COLUMNS}, (xmax = 0) AS inserted
            """, (
                new_id(),
                data['external_id'],
                data['name'],
                data.get('description') or '',
                data['price'],
                data['category'],
                data.get('stock', 0),
                Json(list(data.get('image_urls') or [])),
                data.get('created_at') or utcnow(),
                utcnow(),
            ))

            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_product(row), bool(row['inserted'])

        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def get_stats(self) -> dict:
        """
        Catalog summary for the dashboard

        Returns:
            Dictionary with product counts, stock and inventory value
        """
        conn = self._connect()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) as total_products,
                    COALESCE(SUM(stock), 0) as total_stock,
                    COALESCE(SUM(price * stock), 0) as inventory_value,
                    COUNT(*) FILTER (WHERE external_id IS NOT NULL) as mirrored_products,
                    COUNT(*) FILTER (WHERE stock = 0) as out_of_stock
                FROM products
            """)
            row = cursor.fetchone()

            return {
                'total_products': row['total_products'],
                'total_stock': int(row['total_stock']),
                'inventory_value': float(row['inventory_value']),
                'mirrored_products': row['mirrored_products'],
                'unmirrored_products': row['total_products'] - row['mirrored_products'],
                'out_of_stock': row['out_of_stock'],
            }

        finally:
            cursor.close()
            conn.close()
