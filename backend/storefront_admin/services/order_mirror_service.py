"""
Order Mirror Service - read-down cache of Shopify orders

Orders are never created or changed locally; Shopify is the only source of
truth and every pull overwrites the cache.
"""
import time
import logging
from typing import List
from dataclasses import dataclass, field

from storefront_admin.connectors.shopify_connector import ShopifyConnector
from storefront_admin.core.config import settings
from storefront_admin.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)


@dataclass
class OrderSyncResult:
    success: bool
    message: str
    remote_count: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    duration_seconds: float = 0.0
    skipped: bool = False
    errors: List[str] = field(default_factory=list)


class OrderMirrorService:

    def __init__(self, connector: ShopifyConnector, orders: OrderRepository, default_currency: str = None):
        self.connector = connector
        self.orders = orders
        self.default_currency = default_currency or settings.DEFAULT_CURRENCY

    async def pull_all(self) -> OrderSyncResult:
        """
        Replace the local order cache with Shopify's orders (any status)

        Returns:
            OrderSyncResult with created/updated/deleted counts
        """
        start_time = time.time()

        remote_orders = await self.connector.list_orders()
        remote_ids = [str(o['id']) for o in remote_orders]

        deleted = self.orders.delete_missing_external(remote_ids)
        created = 0
        updated = 0
        errors: List[str] = []

        for remote in remote_orders:
            try:
                _, inserted = self.orders.upsert_by_external_id(
                    self.connector.normalize_order(remote, default_currency=self.default_currency)
                )
            except Exception as e:
                logger.error(f"Failed to store Shopify order {remote.get('id')}: {e}")
                errors.append(f"{remote.get('id')}: {e}")
                continue

            if inserted:
                created += 1
            else:
                updated += 1

        duration = round(time.time() - start_time, 2)
        logger.info(
            f"Order pull: {len(remote_orders)} remote, {created} created, "
            f"{updated} updated, {deleted} deleted in {duration}s"
        )

        return OrderSyncResult(
            success=not errors,
            message="Orders synchronized from Shopify" if not errors else "Orders synchronized with errors",
            remote_count=len(remote_orders),
            created=created,
            updated=updated,
            deleted=deleted,
            duration_seconds=duration,
            errors=errors,
        )
