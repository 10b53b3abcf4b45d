#!/usr/bin/env python3
"""
Sync Shopify - pull products and/or orders from Shopify into the local store

Runs the same reconciliation as POST /api/sync/* outside the HTTP server
(cron, first deployment, manual repair). The rate limit does not apply.

Usage:
    python3 scripts/sync_shopify.py [--products] [--orders] [--check]
"""
import os
import sys
import asyncio
import argparse
import logging
from dataclasses import asdict
from pathlib import Path
from dotenv import load_dotenv

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Load environment
load_dotenv(Path(__file__).parent.parent / '.env')

from storefront_admin.connectors.shopify_connector import ShopifyConnector
from storefront_admin.core.config import settings
from storefront_admin.core.database import init_database
from storefront_admin.core.errors import ShopifyAPIError
from storefront_admin.repositories import ProductRepository, OrderRepository
from storefront_admin.services.product_mirror_service import ProductMirrorService
from storefront_admin.services.order_mirror_service import OrderMirrorService

logger = logging.getLogger("sync_shopify")


def print_result(title: str, result: dict):
    print(f"\n{title}")
    print(f"   remote: {result['remote_count']}  created: {result['created']}  "
          f"updated: {result['updated']}  deleted: {result['deleted']}  "
          f"({result['duration_seconds']}s)")
    for error in result['errors']:
        print(f"   ! {error}")


async def run(sync_products: bool, sync_orders: bool, check_only: bool) -> bool:
    connector = ShopifyConnector()

    print("\nTesting Shopify connection...")
    test_result = await connector.test_connection()
    if not test_result['success']:
        print(f"Connection failed: {test_result.get('error')}")
        return False
    print(f"Connected to {test_result['shop_name']} ({test_result['currency']})")

    if check_only:
        return True

    init_database()
    success = True

    try:
        if sync_products:
            result = await ProductMirrorService(connector, ProductRepository()).pull_all()
            print_result("Products", asdict(result))
            success = success and result.success

        if sync_orders:
            result = await OrderMirrorService(connector, OrderRepository()).pull_all()
            print_result("Orders", asdict(result))
            success = success and result.success

    except ShopifyAPIError as e:
        logger.error(f"Sync aborted: {e.message} ({e.detail})")
        return False

    return success


def main():
    parser = argparse.ArgumentParser(description='Pull products and orders from Shopify into the local store')
    parser.add_argument('--products', action='store_true', help='Pull products only')
    parser.add_argument('--orders', action='store_true', help='Pull orders only')
    parser.add_argument('--check', action='store_true', help='Only test the Shopify connection')
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Neither flag means both
    both = not args.products and not args.orders

    try:
        success = asyncio.run(run(args.products or both, args.orders or both, args.check))
    except ValueError as e:
        print(f"Configuration error: {e}")
        success = False

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
