"""
Sync Service - explicitly triggered Shopify reconciliation

Pulls never run on plain reads. They are triggered through the sync
endpoints (or ?refresh=true on list endpoints) and are:
- serialized per resource with an asyncio.Lock
- rate limited: a pull inside SYNC_MIN_INTERVAL_SECONDS of the last
  successful one is skipped unless forced
"""
import time
import asyncio
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from storefront_admin.core.config import settings
from storefront_admin.core.errors import ShopifyAPIError
from storefront_admin.services.product_mirror_service import ProductMirrorService, ProductSyncResult
from storefront_admin.services.order_mirror_service import OrderMirrorService, OrderSyncResult

logger = logging.getLogger(__name__)

RESOURCES = ('products', 'orders')


class SyncTracker:
    """
    Process-wide record of pull runs

    One instance lives for the lifetime of the app (see api/deps.py).
    """

    def __init__(self, min_interval_seconds: Optional[int] = None):
        self.min_interval_seconds = (
            settings.SYNC_MIN_INTERVAL_SECONDS if min_interval_seconds is None else min_interval_seconds
        )
        self._locks: Dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in RESOURCES}
        self._last_success: Dict[str, float] = {}
        self._status: Dict[str, Dict[str, Any]] = {
            name: {'last_sync_at': None, 'last_result': None, 'last_error': None}
            for name in RESOURCES
        }

    def lock(self, resource: str) -> asyncio.Lock:
        return self._locks[resource]

    def seconds_since_success(self, resource: str) -> Optional[float]:
        last = self._last_success.get(resource)
        return None if last is None else time.monotonic() - last

    def is_recent(self, resource: str) -> bool:
        age = self.seconds_since_success(resource)
        return age is not None and age < self.min_interval_seconds

    def record_success(self, resource: str, result) -> None:
        self._last_success[resource] = time.monotonic()
        self._status[resource] = {
            'last_sync_at': datetime.now(timezone.utc).isoformat(),
            'last_result': asdict(result),
            'last_error': None,
        }

    def record_failure(self, resource: str, error: str) -> None:
        self._status[resource]['last_error'] = error

    def status(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {**self._status[name], 'running': self._locks[name].locked()}
            for name in RESOURCES
        }


class SyncService:
    """
    Runs product/order pulls through the tracker

    Args:
        tracker: Shared SyncTracker
        product_mirror: Product pull implementation
        order_mirror: Order pull implementation
    """

    def __init__(self, tracker: SyncTracker, product_mirror: ProductMirrorService, order_mirror: OrderMirrorService):
        self.tracker = tracker
        self.product_mirror = product_mirror
        self.order_mirror = order_mirror

    async def _run(self, resource: str, pull: Callable[[], Awaitable[Any]], result_cls, force: bool):
        lock = self.tracker.lock(resource)

        if lock.locked():
            logger.info(f"{resource} sync already running, skipping")
            return result_cls(success=True, message=f"A {resource} sync is already running", skipped=True)

        async with lock:
            if not force and self.tracker.is_recent(resource):
                age = self.tracker.seconds_since_success(resource)
                logger.debug(f"{resource} sync skipped, last success {age:.1f}s ago")
                return result_cls(
                    success=True,
                    message=f"Skipped: last {resource} sync ran {int(age)}s ago",
                    skipped=True,
                )

            try:
                result = await pull()
            except ShopifyAPIError as e:
                self.tracker.record_failure(resource, e.detail or e.message)
                logger.error(f"{resource} sync failed: {e.detail or e.message}")
                raise
            except Exception as e:
                self.tracker.record_failure(resource, str(e))
                raise

            self.tracker.record_success(resource, result)
            return result

    async def sync_products(self, force: bool = False) -> ProductSyncResult:
        return await self._run('products', self.product_mirror.pull_all, ProductSyncResult, force)

    async def sync_orders(self, force: bool = False) -> OrderSyncResult:
        return await self._run('orders', self.order_mirror.pull_all, OrderSyncResult, force)

    async def sync_all(self, force: bool = False) -> Dict[str, Any]:
        """
        Run the product pull then the order pull

        A failing pull does not prevent the other one from running.
        """
        start_time = time.time()
        response: Dict[str, Any] = {'products': None, 'orders': None, 'errors': []}

        for resource, run in (('products', self.sync_products), ('orders', self.sync_orders)):
            try:
                response[resource] = asdict(await run(force=force))
            except ShopifyAPIError as e:
                response['errors'].append(f"{resource}: {e.detail or e.message}")

        response['success'] = not response['errors']
        response['total_duration_seconds'] = round(time.time() - start_time, 2)
        response['timestamp'] = datetime.now(timezone.utc).isoformat()
        return response

    def get_status(self) -> Dict[str, Any]:
        return {
            'min_interval_seconds': self.tracker.min_interval_seconds,
            **self.tracker.status(),
        }
