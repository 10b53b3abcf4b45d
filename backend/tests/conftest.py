"""
Pytest fixtures and configuration for Storefront Admin backend tests

This file provides shared fixtures that can be used across all test modules.
Settings are read at import time, so the test environment is set before
anything from storefront_admin is imported.
"""
import os

from dotenv import load_dotenv

os.environ["ENVIRONMENT"] = "test"
os.environ["INIT_DATABASE_ON_STARTUP"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SHOPIFY_STORE_NAME"] = ""
os.environ["SHOPIFY_ACCESS_TOKEN"] = ""
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASS"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["CLOUDINARY_CLOUD_NAME"] = ""

# Values set above win over a developer .env
load_dotenv()

import pytest
from fastapi.testclient import TestClient

from storefront_admin.main import app
from storefront_admin.api import deps
from storefront_admin.core.auth import create_access_token, hash_password
from storefront_admin.services.sync_service import SyncTracker
from storefront_admin.services.upload_service import LocalImageStorage

from fakes import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    FakeShopify,
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
)


@pytest.fixture
def product_repo():
    return InMemoryProductRepository()


@pytest.fixture
def order_repo():
    return InMemoryOrderRepository()


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def shopify():
    """Stateful fake Shopify store"""
    return FakeShopify()


@pytest.fixture
def sync_tracker():
    return SyncTracker(min_interval_seconds=30)


@pytest.fixture
def admin_user(user_repo):
    """The seeded admin user"""
    return user_repo.insert("Admin User", ADMIN_EMAIL, hash_password(ADMIN_PASSWORD))


@pytest.fixture
def auth_headers(admin_user):
    token = create_access_token(admin_user.id, admin_user.email, admin_user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(product_repo, order_repo, user_repo, shopify, sync_tracker, tmp_path):
    """
    TestClient wired to in-memory repositories and the fake Shopify

    Not entered as a context manager, so startup (database bootstrap) does not run.
    """
    app.dependency_overrides[deps.get_product_repository] = lambda: product_repo
    app.dependency_overrides[deps.get_order_repository] = lambda: order_repo
    app.dependency_overrides[deps.get_user_repository] = lambda: user_repo
    app.dependency_overrides[deps.get_optional_shopify_connector] = shopify.connector
    app.dependency_overrides[deps.get_sync_tracker] = lambda: sync_tracker
    app.dependency_overrides[deps.get_image_storage] = lambda: LocalImageStorage(upload_dir=str(tmp_path))

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def sample_product_data():
    """
    Provides sample product data for tests
    """
    return {
        "name": "Lamp",
        "description": "Brass desk lamp",
        "price": 19.99,
        "category": "Home",
        "stock": 10,
        "image_urls": ["https://cdn.example.com/lamp.png"],
    }


@pytest.fixture
def sample_customer():
    return {
        "first_name": "Amina",
        "last_name": "Haddad",
        "email": "amina@example.com",
        "phone": "+212600000000",
    }
