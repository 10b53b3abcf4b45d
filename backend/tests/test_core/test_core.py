"""
Unit tests for core helpers: tokens, passwords, errors and database bootstrap
"""
import pytest
from unittest.mock import MagicMock, patch

import psycopg2
from fastapi import HTTPException
from jose import jwt

from storefront_admin.core import database
from storefront_admin.core.auth import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from storefront_admin.core.config import settings
from storefront_admin.core.errors import PartialSyncError, ShopifyAPIError


class TestTokens:

    def test_token_round_trip_carries_identity(self):
        payload = decode_access_token(create_access_token("u1", "admin@example.com", "admin"))

        assert payload["id"] == "u1"
        assert payload["sub"] == "u1"
        assert payload["email"] == "admin@example.com"
        assert payload["exp"] - payload["iat"] == settings.JWT_EXPIRE_MINUTES * 60

    def test_token_signed_with_other_secret_is_403(self):
        token = jwt.encode({"id": "u1", "email": "a@example.com"}, "other-secret", algorithm="HS256")

        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)

        assert exc_info.value.status_code == 403

    def test_expired_token_is_403(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(create_access_token("u1", "a@example.com", "admin", expires_minutes=-5))

        assert exc_info.value.detail == "Token has expired"

    def test_password_hashing(self):
        password_hash = hash_password("admin123")

        assert password_hash != "admin123"
        assert verify_password("admin123", password_hash)
        assert not verify_password("admin124", password_hash)


class TestErrors:

    def test_to_dict_hides_detail_when_asked(self):
        error = PartialSyncError("rollback failed", detail="db down", product_id="p1")

        assert error.to_dict() == {"message": "rollback failed", "kind": "partially_synced", "error": "db down", "product_id": "p1"}
        assert "error" not in error.to_dict(include_detail=False)

    def test_shopify_error_not_found(self):
        assert ShopifyAPIError("gone", status=404).is_not_found
        assert not ShopifyAPIError("down").is_not_found


class TestDatabase:

    @patch('storefront_admin.core.database.time.sleep')
    @patch('storefront_admin.core.database.psycopg2.connect')
    def test_connection_retries_with_backoff(self, mock_connect, mock_sleep):
        conn = MagicMock()
        mock_connect.side_effect = [psycopg2.OperationalError("down"), psycopg2.OperationalError("down"), conn]

        assert database.get_db_connection_dict_with_retry(max_retries=3, retry_delay=1.0) is conn
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch('storefront_admin.core.database.time.sleep')
    @patch('storefront_admin.core.database.psycopg2.connect')
    def test_connection_gives_up_after_max_retries(self, mock_connect, mock_sleep):
        mock_connect.side_effect = psycopg2.OperationalError("down")

        with pytest.raises(psycopg2.OperationalError):
            database.get_db_connection_dict_with_retry(max_retries=2, retry_delay=0.1)

        assert mock_connect.call_count == 2

    def test_init_database_seeds_admin_once(self):
        conn = MagicMock()
        cursor = conn.cursor.return_value
        cursor.fetchone.return_value = None

        database.init_database(connection_factory=lambda: conn)

        statements = [c.args[0] for c in cursor.execute.call_args_list]
        assert "CREATE TABLE IF NOT EXISTS products" in statements[0]
        assert any("INSERT INTO users" in sql for sql in statements)
        conn.commit.assert_called_once()

    def test_init_database_skips_existing_admin(self):
        conn = MagicMock()
        cursor = conn.cursor.return_value
        cursor.fetchone.return_value = {"id": "u1"}

        database.init_database(connection_factory=lambda: conn)

        statements = [c.args[0] for c in cursor.execute.call_args_list]
        assert not any("INSERT INTO users" in sql for sql in statements)
