"""
Products API Endpoints
Product catalog CRUD mirrored to Shopify

Reads are served from the local store. Pass ?refresh=true on the list
endpoint to pull from Shopify first (rate limited, see services/sync_service.py).
"""
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront_admin.core.auth import get_current_user
from storefront_admin.core.errors import IntegrationNotConfigured
from storefront_admin.domain.product import ProductCreate, ProductUpdate
from storefront_admin.repositories.product_repository import ProductRepository
from storefront_admin.services.product_service import ProductService
from storefront_admin.services.sync_service import SyncService
from storefront_admin.api.deps import (
    PASSTHROUGH_ERRORS,
    get_optional_sync_service,
    get_product_repository,
    get_product_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
    dependencies=[Depends(get_current_user)],
)


def _not_found(product_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Product {product_id} not found")


@router.get("")
async def get_products(
    refresh: bool = Query(False, description="Pull from Shopify before answering"),
    force: bool = Query(False, description="With refresh, ignore the sync rate limit"),
    products: ProductRepository = Depends(get_product_repository),
    sync: Optional[SyncService] = Depends(get_optional_sync_service),
):
    """
    Get all products, newest first

    Returns products from the local store; with refresh=true the store is
    reconciled with Shopify first and the sync result is included.
    """
    sync_result = None
    try:
        if refresh:
            if sync is None:
                raise IntegrationNotConfigured("Shopify is not configured; cannot refresh products")
            sync_result = asdict(await sync.sync_products(force=force))

        items = products.find_all()

    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error fetching products: {e}")
        raise HTTPException(status_code=500, detail="Server error fetching products")

    response = {
        "status": "success",
        "count": len(items),
        "data": [product.to_dict() for product in items],
    }
    if sync_result is not None:
        response["sync"] = sync_result
    return response


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    service: ProductService = Depends(get_product_service),
):
    """Create a product locally and on Shopify"""
    try:
        product = await service.create_product(product_data)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error creating product: {e}")
        raise HTTPException(status_code=500, detail="Server error creating product")

    logger.info(f"Product created: {product.id} (shopify {product.external_id})")
    return {"status": "success", "data": product.to_dict()}


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    products: ProductRepository = Depends(get_product_repository),
):
    try:
        product = products.find_by_id(product_id)
    except Exception as e:
        logger.exception(f"Error fetching product {product_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error fetching product")

    if not product:
        raise _not_found(product_id)
    return {"status": "success", "data": product.to_dict()}


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    update: ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    """
    Apply a partial update and push it to Shopify

    Fields left out of the body are kept as they are.
    """
    try:
        product = await service.update_product(product_id, update.changes())
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error updating product {product_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error updating product")

    if not product:
        raise _not_found(product_id)

    return {
        "status": "success",
        "message": "Product updated successfully",
        "data": product.to_dict(),
    }


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    """Delete from Shopify, then locally"""
    try:
        deleted = await service.delete_product(product_id)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error deleting product {product_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error deleting product")

    if not deleted:
        raise _not_found(product_id)

    return {"status": "success", "message": "Product deleted successfully"}
