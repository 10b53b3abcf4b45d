"""
Sync API - explicit Shopify reconciliation

Endpoints:
- GET  /api/sync/status    - Last run of each pull
- POST /api/sync/products  - Pull products from Shopify
- POST /api/sync/orders    - Pull orders from Shopify
- POST /api/sync/all       - Pull products then orders

Pulls inside SYNC_MIN_INTERVAL_SECONDS of the last successful one are
skipped unless ?force=true.
"""
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront_admin.core.auth import get_current_user
from storefront_admin.services.sync_service import SyncService, SyncTracker
from storefront_admin.api.deps import PASSTHROUGH_ERRORS, get_sync_service, get_sync_tracker

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/sync",
    tags=["Sync"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/status")
async def get_sync_status(tracker: SyncTracker = Depends(get_sync_tracker)):
    """Last result, time and error of each pull"""
    return {
        "status": "success",
        "data": {"min_interval_seconds": tracker.min_interval_seconds, **tracker.status()},
    }


@router.post("/products")
async def sync_products(
    force: bool = Query(False, description="Ignore the rate limit"),
    sync: SyncService = Depends(get_sync_service),
):
    logger.info(f"Product sync requested (force={force})")
    try:
        result = await sync.sync_products(force=force)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error syncing products: {e}")
        raise HTTPException(status_code=500, detail="Server error syncing products")

    return {"status": "success", "data": asdict(result)}


@router.post("/orders")
async def sync_orders(
    force: bool = Query(False, description="Ignore the rate limit"),
    sync: SyncService = Depends(get_sync_service),
):
    logger.info(f"Order sync requested (force={force})")
    try:
        result = await sync.sync_orders(force=force)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error syncing orders: {e}")
        raise HTTPException(status_code=500, detail="Server error syncing orders")

    return {"status": "success", "data": asdict(result)}


@router.post("/all")
async def sync_all(
    force: bool = Query(False, description="Ignore the rate limit"),
    sync: SyncService = Depends(get_sync_service),
):
    """Run both pulls; one failing does not stop the other"""
    logger.info(f"Full sync requested (force={force})")
    try:
        result = await sync.sync_all(force=force)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error running full sync: {e}")
        raise HTTPException(status_code=500, detail="Server error running full sync")

    return {"status": "success" if result["success"] else "partial", "data": result}
