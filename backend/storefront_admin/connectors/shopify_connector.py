"""
Shopify REST Connector
Handles all interactions with the Shopify Admin REST API
"""
import logging
from typing import Dict, List, Optional, Any
from datetime import datetime
from decimal import Decimal, InvalidOperation

import httpx

from storefront_admin.core.config import settings
from storefront_admin.core.errors import ShopifyAPIError
from storefront_admin.domain.product import Product

logger = logging.getLogger(__name__)

PAGE_SIZE = 250


def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value)) if value not in (None, '') else Decimal('0')
    except InvalidOperation:
        return Decimal('0')


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


class ShopifyConnector:
    """
    Connector for the Shopify Admin REST API

    Handles:
    - Product listing, creation, update and deletion
    - Order listing
    - Normalization of Shopify payloads to our storage format

    Every failure (transport error or non-2xx) is raised as ShopifyAPIError
    carrying the HTTP status; there is no retry.
    """

    def __init__(
        self,
        shop_name: str = None,
        access_token: str = None,
        api_version: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize Shopify connector

        Args:
            shop_name: Shopify store name (e.g., 'my-store' for my-store.myshopify.com)
            access_token: Shopify Admin API access token
            api_version: Admin API version path segment
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.shop_name = shop_name or settings.SHOPIFY_STORE_NAME
        self.access_token = access_token or settings.SHOPIFY_ACCESS_TOKEN
        self.api_version = api_version or settings.SHOPIFY_API_VERSION

        if not self.shop_name or not self.access_token:
            raise ValueError("Shopify credentials not configured. Set SHOPIFY_STORE_NAME and SHOPIFY_ACCESS_TOKEN")

        self.base_url = f"https://{self.shop_name}.myshopify.com/admin/api/{self.api_version}"
        self.headers = {
            'Content-Type': 'application/json',
            'X-Shopify-Access-Token': self.access_token
        }
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute one REST call and turn any failure into ShopifyAPIError"""
        async with self._client() as client:
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                logger.error(f"Shopify {method} {path} transport error: {e}")
                raise ShopifyAPIError(f"Shopify request failed: {method} {path}", detail=str(e))

        if response.is_error:
            detail = self._error_detail(response)
            if response.status_code != 404:
                logger.error(f"Shopify {method} {path} returned {response.status_code}: {detail}")
            raise ShopifyAPIError(
                f"Shopify returned {response.status_code} for {method} {path}",
                status=response.status_code,
                detail=detail,
            )

        return response

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        return str(body.get('errors', body)) if isinstance(body, dict) else str(body)

    async def _get_all(self, path: str, key: str, params: Dict = None) -> List[Dict]:
        """
        Follow Link rel="next" cursor pagination until exhausted

        Args:
            path: Collection path (e.g. '/products.json')
            key: Top-level key in the JSON body ('products', 'orders')
            params: Query parameters for the first page
        """
        items: List[Dict] = []
        url: Optional[str] = path
        query = {'limit': PAGE_SIZE, **(params or {})}

        while url:
            response = await self._request('GET', url, params=query)
            items.extend(response.json().get(key, []))

            next_link = response.links.get('next', {}).get('url')
            url = next_link
            # The next URL already carries page_info and limit
            query = None

        return items

    # =========================================================================
    # Products
    # =========================================================================

    async def list_products(self) -> List[Dict]:
        """Get every product in the store"""
        return await self._get_all('/products.json', 'products')

    async def create_product(self, payload: Dict) -> Dict:
        response = await self._request('POST', '/products.json', json=payload)
        return response.json().get('product', {})

    async def update_product(self, external_id: str, payload: Dict) -> Dict:
        response = await self._request('PUT', f'/products/{external_id}.json', json=payload)
        return response.json().get('product', {})

    async def delete_product(self, external_id: str) -> None:
        await self._request('DELETE', f'/products/{external_id}.json')

    # =========================================================================
    # Orders
    # =========================================================================

    async def list_orders(self) -> List[Dict]:
        """Get every order in the store, any status"""
        return await self._get_all('/orders.json', 'orders', params={'status': 'any'})

    # =========================================================================
    # Payload builders / normalizers
    # =========================================================================

    @staticmethod
    def build_product_payload(product: Product, external_id: Optional[str] = None) -> Dict:
        """
        Build the Shopify representation of a local product

        A single variant carries price and stock. On update (external_id set)
        the image list is only sent when non-empty so Shopify keeps its images.
        """
        images = [
            {'src': url, 'position': index + 1}
            for index, url in enumerate(product.image_urls)
        ]

        body: Dict[str, Any] = {
            'title': product.name,
            'body_html': product.description or '',
            'product_type': product.category or 'Uncategorized',
            'variants': [{
                'price': f"{product.price:.2f}",
                'inventory_quantity': product.stock or 0,
            }],
        }

        if external_id:
            body['id'] = external_id
            if images:
                body['images'] = images
        else:
            body['vendor'] = settings.SHOPIFY_VENDOR
            body['images'] = images
            body['variants'][0]['inventory_management'] = 'shopify'
            body['status'] = 'active'

        return {'product': body}

    @staticmethod
    def normalize_product(shopify_product: Dict) -> Dict:
        """
        Normalize Shopify product to our database format

        Only the first variant is mirrored (price and stock).
        """
        variants = shopify_product.get('variants') or [{}]
        first_variant = variants[0]

        return {
            'external_id': str(shopify_product['id']),
            'name': shopify_product.get('title') or 'Untitled',
            'description': shopify_product.get('body_html') or '',
            'price': _to_decimal(first_variant.get('price')),
            'stock': max(int(first_variant.get('inventory_quantity') or 0), 0),
            'image_urls': [img['src'] for img in shopify_product.get('images') or [] if img.get('src')],
            'category': shopify_product.get('product_type') or 'Uncategorized',
            'created_at': _parse_datetime(shopify_product.get('created_at')),
        }

    @staticmethod
    def normalize_order(shopify_order: Dict, default_currency: str = None) -> Dict:
        """
        Normalize Shopify order to our database format

        Args:
            shopify_order: Raw order data from Shopify
            default_currency: Currency code used when Shopify omits it

        Returns:
            Normalized order dict ready for database
        """
        customer = shopify_order.get('customer')
        customer_data = None
        if customer:
            customer_data = {
                'first_name': customer.get('first_name') or '',
                'last_name': customer.get('last_name') or '',
                'email': customer.get('email') or '',
                'phone': customer.get('phone') or '',
            }

        line_items = [
            {
                'product_id': str(item['product_id']) if item.get('product_id') else '',
                'variant_id': str(item['variant_id']) if item.get('variant_id') else '',
                'title': item.get('title') or '',
                'quantity': item.get('quantity') or 0,
                'price': float(_to_decimal(item.get('price'))),
            }
            for item in shopify_order.get('line_items') or []
        ]

        return {
            'external_id': str(shopify_order['id']),
            'order_number': str(shopify_order.get('order_number') or shopify_order.get('name') or ''),
            'customer': customer_data,
            'total_price': _to_decimal(shopify_order.get('total_price')),
            'currency': shopify_order.get('currency') or default_currency or settings.DEFAULT_CURRENCY,
            'payment_status': shopify_order.get('financial_status') or 'pending',
            'fulfillment_status': shopify_order.get('fulfillment_status') or 'unfulfilled',
            'line_items': line_items,
            'created_at': _parse_datetime(shopify_order.get('created_at')),
            'updated_at': _parse_datetime(shopify_order.get('updated_at')),
        }

    async def test_connection(self) -> Dict:
        """Test Shopify connection"""
        try:
            response = await self._request('GET', '/shop.json')
            shop = response.json().get('shop', {})
            return {
                'success': True,
                'shop_name': shop.get('name'),
                'email': shop.get('email'),
                'currency': shop.get('currency'),
                'domain': shop.get('domain')
            }
        except ShopifyAPIError as e:
            return {
                'success': False,
                'error': e.detail or e.message
            }
