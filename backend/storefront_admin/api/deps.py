"""
FastAPI dependencies - builds repositories, connectors and services per request

Tests override the leaf providers (repositories, connectors, tracker) with
in-memory fakes through app.dependency_overrides.
"""
from typing import Optional

from fastapi import Depends, HTTPException

from storefront_admin.core.config import settings
from storefront_admin.core.errors import IntegrationNotConfigured, StorefrontAdminError
from storefront_admin.connectors.shopify_connector import ShopifyConnector
from storefront_admin.connectors.cloudinary_connector import CloudinaryConnector
from storefront_admin.connectors.twilio_connector import TwilioConnector
from storefront_admin.repositories import ProductRepository, OrderRepository, UserRepository
from storefront_admin.services.product_mirror_service import ProductMirrorService
from storefront_admin.services.order_mirror_service import OrderMirrorService
from storefront_admin.services.product_service import ProductService
from storefront_admin.services.sync_service import SyncService, SyncTracker
from storefront_admin.services.upload_service import UploadService, LocalImageStorage
from storefront_admin.services.notification_service import NotificationService
from storefront_admin.services.text_generation_service import TextGenerationService

# Errors a route lets through untouched; anything else becomes a generic 500
PASSTHROUGH_ERRORS = (HTTPException, StorefrontAdminError)

# Lives for the lifetime of the process
_sync_tracker = SyncTracker()


# ============================================================================
# Repositories
# ============================================================================

def get_product_repository() -> ProductRepository:
    return ProductRepository()


def get_order_repository() -> OrderRepository:
    return OrderRepository()


def get_user_repository() -> UserRepository:
    return UserRepository()


# ============================================================================
# Shopify
# ============================================================================

def get_optional_shopify_connector() -> Optional[ShopifyConnector]:
    """Connector, or None when SHOPIFY_STORE_NAME / SHOPIFY_ACCESS_TOKEN are unset"""
    if not settings.SHOPIFY_STORE_NAME or not settings.SHOPIFY_ACCESS_TOKEN:
        return None
    return ShopifyConnector()


def get_shopify_connector(
    connector: Optional[ShopifyConnector] = Depends(get_optional_shopify_connector)
) -> ShopifyConnector:
    if connector is None:
        raise IntegrationNotConfigured("Shopify is not configured. Set SHOPIFY_STORE_NAME and SHOPIFY_ACCESS_TOKEN")
    return connector


def get_sync_tracker() -> SyncTracker:
    return _sync_tracker


def get_product_service(
    products: ProductRepository = Depends(get_product_repository),
    connector: ShopifyConnector = Depends(get_shopify_connector),
) -> ProductService:
    return ProductService(products, ProductMirrorService(connector, products))


def _build_sync_service(connector, products, orders, tracker) -> SyncService:
    return SyncService(
        tracker,
        ProductMirrorService(connector, products),
        OrderMirrorService(connector, orders),
    )


def get_sync_service(
    products: ProductRepository = Depends(get_product_repository),
    orders: OrderRepository = Depends(get_order_repository),
    connector: ShopifyConnector = Depends(get_shopify_connector),
    tracker: SyncTracker = Depends(get_sync_tracker),
) -> SyncService:
    return _build_sync_service(connector, products, orders, tracker)


def get_optional_sync_service(
    products: ProductRepository = Depends(get_product_repository),
    orders: OrderRepository = Depends(get_order_repository),
    connector: Optional[ShopifyConnector] = Depends(get_optional_shopify_connector),
    tracker: SyncTracker = Depends(get_sync_tracker),
) -> Optional[SyncService]:
    """For list endpoints: reading the cache must work without Shopify"""
    if connector is None:
        return None
    return _build_sync_service(connector, products, orders, tracker)


# ============================================================================
# Other integrations
# ============================================================================

def get_image_storage():
    """Cloudinary when configured, local disk otherwise"""
    if settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET:
        return CloudinaryConnector()
    return LocalImageStorage()


def get_upload_service(storage=Depends(get_image_storage)) -> UploadService:
    return UploadService(storage)


def get_notification_service() -> NotificationService:
    sms = None
    if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_PHONE_NUMBER:
        sms = TwilioConnector()
    return NotificationService(sms=sms)


def get_text_generation_service() -> TextGenerationService:
    return TextGenerationService()
