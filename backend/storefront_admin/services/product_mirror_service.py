"""
Product Mirror Service - keeps local products and Shopify products in step

Push side (create / update / delete) is called by the product CRUD saga.
Pull side (pull_all) is a full-replace reconciliation: Shopify wins for
every mirrored product.
"""
import time
import logging
from typing import List
from dataclasses import dataclass, field

from storefront_admin.connectors.shopify_connector import ShopifyConnector
from storefront_admin.core.errors import ShopifyAPIError, ExternalIdNotStored
from storefront_admin.domain.product import Product
from storefront_admin.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


@dataclass
class ProductSyncResult:
    success: bool
    message: str
    remote_count: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    duration_seconds: float = 0.0
    skipped: bool = False
    errors: List[str] = field(default_factory=list)


class ProductMirrorService:
    """
    Mirrors products to and from Shopify

    Args:
        connector: Shopify REST connector
        products: Local product repository
    """

    def __init__(self, connector: ShopifyConnector, products: ProductRepository):
        self.connector = connector
        self.products = products

    @staticmethod
    def _validate(product: Product) -> None:
        if not product.name:
            raise ValueError("Product name is required")
        if product.price is None or product.price < 0:
            raise ValueError("Valid product price is required")

    async def create(self, product: Product) -> str:
        """
        Create the product on Shopify and record its ID locally

        Returns:
            The new Shopify product ID
        """
        self._validate(product)

        payload = self.connector.build_product_payload(product)
        remote = await self.connector.create_product(payload)

        external_id = str(remote['id'])
        try:
            self.products.set_external_id(product.id, external_id)
        except Exception as e:
            logger.error(f"Product {product.id} created on Shopify as {external_id} but the ID was not stored: {e}")
            raise ExternalIdNotStored(
                "Product was created on Shopify but its Shopify ID could not be stored",
                external_id=external_id,
                detail=str(e),
            ) from e
        logger.info(f"Product {product.id} mirrored to Shopify as {external_id}")

        return external_id

    async def update(self, external_id: str, product: Product) -> str:
        """
        Push local changes to an existing Shopify product

        If Shopify no longer knows external_id (404) the product is created
        again and the new ID is stored locally.

        Returns:
            The effective Shopify product ID (new one after a 404 fallback)
        """
        self._validate(product)

        payload = self.connector.build_product_payload(product, external_id=external_id)
        try:
            await self.connector.update_product(external_id, payload)
        except ShopifyAPIError as e:
            if not e.is_not_found:
                raise
            logger.warning(f"Product {external_id} not found in Shopify, creating it again")
            return await self.create(product)

        return external_id

    async def delete(self, external_id: str) -> None:
        """Delete the Shopify product; already gone (404) counts as done"""
        try:
            await self.connector.delete_product(external_id)
        except ShopifyAPIError as e:
            if not e.is_not_found:
                raise
            logger.warning(f"Product {external_id} not found in Shopify, proceeding with local deletion")

    async def pull_all(self) -> ProductSyncResult:
        """
        Make the local mirrored catalog equal to Shopify's

        1. List every remote product
        2. Delete local mirrored products missing remotely
        3. Upsert each remote product by external ID

        Local products that were never mirrored are left alone.
        """
        start_time = time.time()

        remote_products = await self.connector.list_products()
        remote_ids = [str(p['id']) for p in remote_products]

        deleted = self.products.delete_missing_external(remote_ids)
        created = 0
        updated = 0
        errors: List[str] = []

        for remote in remote_products:
            try:
                _, inserted = self.products.upsert_by_external_id(
                    self.connector.normalize_product(remote)
                )
            except Exception as e:
                logger.error(f"Failed to store Shopify product {remote.get('id')}: {e}")
                errors.append(f"{remote.get('id')}: {e}")
                continue

            if inserted:
                created += 1
            else:
                updated += 1

        duration = round(time.time() - start_time, 2)
        logger.info(
            f"Product pull: {len(remote_products)} remote, {created} created, "
            f"{updated} updated, {deleted} deleted in {duration}s"
        )

        return ProductSyncResult(
            success=not errors,
            message="Products synchronized from Shopify" if not errors else "Products synchronized with errors",
            remote_count=len(remote_products),
            created=created,
            updated=updated,
            deleted=deleted,
            duration_seconds=duration,
            errors=errors,
        )
