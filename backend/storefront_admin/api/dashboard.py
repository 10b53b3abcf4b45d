"""
Dashboard API - headline numbers for the admin home page
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from storefront_admin.core.auth import get_current_user
from storefront_admin.repositories.product_repository import ProductRepository
from storefront_admin.repositories.order_repository import OrderRepository
from storefront_admin.api.deps import get_order_repository, get_product_repository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/dashboard",
    tags=["Dashboard"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/stats")
async def get_dashboard_stats(
    products: ProductRepository = Depends(get_product_repository),
    orders: OrderRepository = Depends(get_order_repository),
):
    """
    Product and order statistics

    Returns:
    - products: counts, stock and inventory value
    - orders: count and revenue per currency
    """
    try:
        return {
            "status": "success",
            "data": {
                "products": products.get_stats(),
                "orders": orders.get_stats(),
            },
        }
    except Exception as e:
        logger.exception(f"Error computing dashboard stats: {e}")
        raise HTTPException(status_code=500, detail="Server error computing statistics")
