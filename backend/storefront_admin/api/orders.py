"""
Orders API Endpoints
Read-only cache of Shopify orders plus customer notifications
"""
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront_admin.core.auth import get_current_user
from storefront_admin.core.errors import IntegrationNotConfigured
from storefront_admin.domain.order import Order
from storefront_admin.repositories.order_repository import OrderRepository
from storefront_admin.services.notification_service import NotificationService
from storefront_admin.services.sync_service import SyncService
from storefront_admin.api.deps import (
    PASSTHROUGH_ERRORS,
    get_notification_service,
    get_optional_sync_service,
    get_order_repository,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/orders",
    tags=["Orders"],
    dependencies=[Depends(get_current_user)],
)


def _get_order_or_404(orders: OrderRepository, order_id: str) -> Order:
    order = orders.find_by_id(order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Order {order_id} not found")
    return order


@router.get("")
async def get_orders(
    payment_status: Optional[str] = Query(None, description="Filter by payment status (paid, pending, refunded...)"),
    fulfillment_status: Optional[str] = Query(None, description="Filter by fulfillment status"),
    refresh: bool = Query(False, description="Pull from Shopify before answering"),
    force: bool = Query(False, description="With refresh, ignore the sync rate limit"),
    orders: OrderRepository = Depends(get_order_repository),
    sync: Optional[SyncService] = Depends(get_optional_sync_service),
):
    """Get cached orders, newest first"""
    sync_result = None
    try:
        if refresh:
            if sync is None:
                raise IntegrationNotConfigured("Shopify is not configured; cannot refresh orders")
            sync_result = asdict(await sync.sync_orders(force=force))

        items = orders.find_all(payment_status=payment_status, fulfillment_status=fulfillment_status)

    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error fetching orders: {e}")
        raise HTTPException(status_code=500, detail="Server error fetching orders")

    response = {
        "status": "success",
        "count": len(items),
        "data": [order.to_dict() for order in items],
    }
    if sync_result is not None:
        response["sync"] = sync_result
    return response


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    orders: OrderRepository = Depends(get_order_repository),
):
    try:
        order = _get_order_or_404(orders, order_id)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error fetching order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error fetching order")

    return {"status": "success", "data": order.to_dict()}


@router.post("/{order_id}/send-confirmation")
async def send_order_confirmation(
    order_id: str,
    orders: OrderRepository = Depends(get_order_repository),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Email the order confirmation to the customer"""
    try:
        order = _get_order_or_404(orders, order_id)

        if not order.customer or not order.customer.email:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer email not found")

        await notifications.send_order_confirmation(order)

    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error sending confirmation for order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error sending confirmation email")

    return {"status": "success", "message": "Confirmation email sent successfully"}


@router.post("/{order_id}/send-sms")
async def send_order_sms(
    order_id: str,
    orders: OrderRepository = Depends(get_order_repository),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Text the order confirmation to the customer"""
    try:
        order = _get_order_or_404(orders, order_id)

        if not order.customer or not order.customer.phone:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer phone number not found")

        await notifications.send_order_sms(order)

    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error sending SMS for order {order_id}: {e}")
        raise HTTPException(status_code=500, detail="Server error sending SMS")

    return {"status": "success", "message": "SMS sent successfully"}
