"""
Product Service - CRUD with a Shopify mirror

Every mutation is a local write followed by a Shopify call. When the Shopify
call fails the local write is compensated so both sides stay equal:

- create: the inserted row is deleted
- update: the previous row is written back
- delete: Shopify goes first, the local row is only removed afterwards

A product Shopify accepted but whose ID could not be stored locally is
deleted from Shopify again before the local write is compensated.

If the compensating step itself fails a PartialSyncError is raised so the
caller can tell a clean failure from a drifted one.
"""
import logging
from typing import Callable, List, Optional

from storefront_admin.core.errors import ShopifyAPIError, UpstreamSyncError, PartialSyncError, ExternalIdNotStored
from storefront_admin.domain.product import Product, ProductCreate
from storefront_admin.repositories.product_repository import ProductRepository
from storefront_admin.services.product_mirror_service import ProductMirrorService

logger = logging.getLogger(__name__)

# Failures of the remote half of a mutation
MIRROR_ERRORS = (ShopifyAPIError, ValueError)


class ProductService:

    def __init__(self, products: ProductRepository, mirror: ProductMirrorService):
        self.products = products
        self.mirror = mirror

    def list_products(self) -> List[Product]:
        return self.products.find_all()

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.products.find_by_id(product_id)

    def _compensate(self, undo: Callable[[], object], product_id: str, operation: str, error: Exception):
        """Run the compensating action and raise the matching error"""
        detail = getattr(error, 'detail', None) or str(error)
        logger.warning(f"Shopify mirror failed during {operation} of product {product_id}: {detail}. Rolling back local {operation}")

        try:
            undo()
        except Exception as undo_error:
            logger.error(f"Rollback of {operation} for product {product_id} failed: {undo_error}")
            raise PartialSyncError(
                f"Product {operation} was stored locally but not on Shopify, and the rollback failed",
                detail=detail,
                product_id=product_id,
            ) from undo_error

        raise UpstreamSyncError(
            f"Failed to sync product with Shopify; the {operation} was rolled back",
            detail=detail,
            product_id=product_id,
        ) from error

    async def _discard_remote(self, error: ExternalIdNotStored, product_id: str, operation: str):
        """Delete the Shopify product whose ID never reached the local row"""
        try:
            await self.mirror.delete(error.external_id)
        except Exception as delete_error:
            logger.error(f"Could not remove unlinked Shopify product {error.external_id} for product {product_id}: {delete_error}")
            raise PartialSyncError(
                f"Product {operation} reached Shopify but could not be linked locally, and removing it from Shopify failed",
                detail=error.detail,
                product_id=product_id,
                external_id=error.external_id,
            ) from delete_error

    async def create_product(self, data: ProductCreate) -> Product:
        """
        Insert locally, then create on Shopify

        Returns:
            The stored product carrying its Shopify ID
        """
        product = self.products.insert(data.model_dump())

        try:
            external_id = await self.mirror.create(product)
        except ExternalIdNotStored as e:
            await self._discard_remote(e, product.id, "create")
            self._compensate(lambda: self.products.delete(product.id), product.id, "create", e)
        except MIRROR_ERRORS as e:
            self._compensate(lambda: self.products.delete(product.id), product.id, "create", e)

        stored = self.products.find_by_id(product.id)
        return stored or product.model_copy(update={'external_id': external_id})

    async def update_product(self, product_id: str, changes: dict) -> Optional[Product]:
        """
        Apply changes locally, then push them to Shopify

        Products that were never mirrored are created on Shopify instead.
        A stale Shopify ID (404) is replaced by a freshly created product.

        Returns:
            Updated product, or None when product_id does not exist
        """
        existing = self.products.find_by_id(product_id)
        if not existing:
            return None

        updated = self.products.update(product_id, changes)

        try:
            if existing.external_id:
                await self.mirror.update(existing.external_id, updated)
            else:
                await self.mirror.create(updated)
        except ExternalIdNotStored as e:
            await self._discard_remote(e, product_id, "update")
            self._compensate(lambda: self.products.restore(existing), product_id, "update", e)
        except MIRROR_ERRORS as e:
            self._compensate(lambda: self.products.restore(existing), product_id, "update", e)

        return self.products.find_by_id(product_id)

    async def delete_product(self, product_id: str) -> bool:
        """
        Delete on Shopify first, then locally

        Returns:
            False when product_id does not exist
        """
        existing = self.products.find_by_id(product_id)
        if not existing:
            return False

        if existing.external_id:
            try:
                await self.mirror.delete(existing.external_id)
            except ShopifyAPIError as e:
                logger.warning(f"Shopify delete failed for product {product_id}: {e.detail or e.message}")
                raise UpstreamSyncError(
                    "Failed to delete product from Shopify; local product kept",
                    detail=e.detail or e.message,
                    product_id=product_id,
                ) from e

        try:
            self.products.delete(product_id)
        except Exception as e:
            if not existing.external_id:
                raise
            logger.error(f"Product {product_id} deleted on Shopify but local delete failed: {e}")
            raise PartialSyncError(
                "Product was deleted from Shopify but the local delete failed",
                detail=str(e),
                product_id=product_id,
            ) from e

        return True
