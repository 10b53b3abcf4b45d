"""
Cloudinary Connector
Signed image uploads through the Cloudinary Upload REST API
"""
import time
import hashlib
import logging
from typing import Dict, Optional

import httpx

from storefront_admin.core.config import settings
from storefront_admin.core.errors import IntegrationError

logger = logging.getLogger(__name__)


class CloudinaryConnector:
    """
    Connector for the Cloudinary Upload API

    Usage:
        connector = CloudinaryConnector()
        url = await connector.upload_image(content, "lamp.png", "image/png")
    """

    def __init__(
        self,
        cloud_name: str = None,
        api_key: str = None,
        api_secret: str = None,
        folder: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        self.folder = folder or settings.CLOUDINARY_FOLDER

        if not all([self.cloud_name, self.api_key, self.api_secret]):
            raise ValueError("Cloudinary credentials not configured. Set CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET")

        self.upload_url = f"https://api.cloudinary.com/v1_1/{self.cloud_name}/image/upload"
        self._transport = transport

    def sign(self, params: Dict[str, str]) -> str:
        """SHA-1 signature over the alphabetically sorted upload parameters"""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode()).hexdigest()

    async def upload_image(self, content: bytes, filename: str, content_type: str) -> str:
        """
        Upload one image

        Returns:
            The secure (https) delivery URL
        """
        params = {'folder': self.folder, 'timestamp': str(int(time.time()))}
        data = {**params, 'api_key': self.api_key, 'signature': self.sign(params)}

        async with httpx.AsyncClient(timeout=60.0, transport=self._transport) as client:
            try:
                response = await client.post(
                    self.upload_url,
                    data=data,
                    files={'file': (filename, content, content_type)},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.error(f"Cloudinary upload failed for {filename}: {e}")
                raise IntegrationError("Image upload failed", detail=str(e))

        return response.json()['secure_url']
