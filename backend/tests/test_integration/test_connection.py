"""
Integration tests against a real PostgreSQL database

Skipped unless TEST_DATABASE_URL points at a disposable database; the
products, orders and users tables are emptied before each test.
"""
import os
from decimal import Decimal

import pytest
import psycopg2
from psycopg2.extras import RealDictCursor

from storefront_admin.core.database import init_database
from storefront_admin.repositories import ProductRepository, OrderRepository


@pytest.fixture(scope="session")
def database_url():
    """
    Provides the database URL for integration tests

    Scope: session (created once per test session)
    """
    url = os.getenv("TEST_DATABASE_URL")
    if not url:
        pytest.skip("TEST_DATABASE_URL not configured")
    return url


@pytest.fixture
def connection_factory(database_url):
    def connect():
        return psycopg2.connect(database_url, cursor_factory=RealDictCursor)

    init_database(connection_factory=connect)

    conn = connect()
    cursor = conn.cursor()
    cursor.execute("TRUNCATE products, orders")
    conn.commit()
    cursor.close()
    conn.close()

    return connect


class TestPostgres:

    def test_schema_bootstrap_seeds_admin(self, connection_factory):
        conn = connection_factory()
        cursor = conn.cursor()
        cursor.execute("SELECT role FROM users WHERE email = %s", ("admin@example.com",))
        row = cursor.fetchone()
        cursor.close()
        conn.close()

        assert row["role"] == "admin"

    def test_product_upsert_and_delete_missing(self, connection_factory):
        repo = ProductRepository(connection_factory=connection_factory)
        local = repo.insert({"name": "Draft", "price": Decimal("1"), "category": "Home"})

        _, inserted = repo.upsert_by_external_id({
            "external_id": "7001", "name": "Lamp", "price": Decimal("19.99"), "category": "Home",
            "stock": 10, "image_urls": ["https://cdn.example.com/lamp.png"],
        })
        stored, inserted_again = repo.upsert_by_external_id({
            "external_id": "7001", "name": "Lamp v2", "price": Decimal("21.00"), "category": "Home",
        })
        deleted = repo.delete_missing_external([])

        assert inserted is True
        assert inserted_again is False
        assert stored.name == "Lamp v2"
        assert deleted == 1
        assert [p.id for p in repo.find_all()] == [local.id]

    def test_order_upsert_keeps_local_id(self, connection_factory):
        repo = OrderRepository(connection_factory=connection_factory)
        data = {
            "external_id": "5001", "order_number": "1001", "customer": None,
            "total_price": Decimal("25.00"), "currency": "MAD",
            "line_items": [{"title": "Lamp", "quantity": 1, "price": 25.0}],
        }

        first, _ = repo.upsert_by_external_id(data)
        second, inserted = repo.upsert_by_external_id({**data, "payment_status": "paid"})

        assert inserted is False
        assert second.id == first.id
        assert second.is_paid
