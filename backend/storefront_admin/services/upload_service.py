"""
Upload Service - product image uploads

Validates a batch of images (count, extension/MIME allowlist, size) and
stores them on Cloudinary when configured, or on local disk otherwise.
All files of a batch upload concurrently; one failure fails the batch.
"""
import re
import time
import random
import asyncio
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import List, Optional

from storefront_admin.core.config import settings
from storefront_admin.core.errors import UploadRejected, IntegrationError

logger = logging.getLogger(__name__)

ALLOWED_TYPES = re.compile(r"jpeg|jpg|png")
ALLOWED_EXTENSIONS = ('.jpeg', '.jpg', '.png')


@dataclass
class IncomingImage:
    filename: str
    content_type: str
    content: bytes


class LocalImageStorage:
    """Writes images under UPLOAD_DIR; served by main.py at /uploads"""

    def __init__(self, upload_dir: str = None, public_prefix: str = "/uploads"):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.public_prefix = public_prefix.rstrip("/")

    @staticmethod
    def unique_name(filename: str) -> str:
        suffix = Path(filename).suffix.lower()
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"

    async def upload_image(self, content: bytes, filename: str, content_type: str) -> str:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        name = self.unique_name(filename)
        try:
            await asyncio.to_thread((self.upload_dir / name).write_bytes, content)
        except OSError as e:
            logger.error(f"Could not write upload {filename}: {e}")
            raise IntegrationError("Image upload failed", detail=str(e))
        return f"{self.public_prefix}/{name}"


class UploadService:
    """
    Args:
        storage: Object with ``async upload_image(content, filename, content_type) -> url``
        max_files: Ceiling on files per request
        max_size_bytes: Ceiling per file
    """

    def __init__(self, storage, max_files: Optional[int] = None, max_size_bytes: Optional[int] = None):
        self.storage = storage
        self.max_files = max_files or settings.MAX_UPLOAD_FILES
        self.max_size_bytes = max_size_bytes or settings.MAX_UPLOAD_SIZE_BYTES

    def check_count(self, count: int) -> None:
        if not count:
            raise UploadRejected("No files uploaded")

        if count > self.max_files:
            raise UploadRejected(f"Too many files: at most {self.max_files} images per upload")

    def check_size(self, filename: str, size: int) -> None:
        if size > self.max_size_bytes:
            raise UploadRejected(
                f"File too large: limit is {self.max_size_bytes // (1024 * 1024)} MB",
                filename=filename,
            )

    def validate(self, images: List[IncomingImage]) -> None:
        """Reject the whole batch on the first offending file"""
        self.check_count(len(images))

        for image in images:
            extension = Path(image.filename or "").suffix.lower()
            if extension not in ALLOWED_EXTENSIONS or not ALLOWED_TYPES.search(image.content_type or ""):
                raise UploadRejected("Only images (jpeg, jpg, png) are allowed", filename=image.filename)

            self.check_size(image.filename, len(image.content))

    async def upload(self, images: List[IncomingImage]) -> List[str]:
        """
        Validate then upload every image in parallel

        Returns:
            Public URLs in the same order as the input
        """
        self.validate(images)

        urls = await asyncio.gather(*[
            self.storage.upload_image(image.content, image.filename, image.content_type)
            for image in images
        ])

        logger.info(f"Uploaded {len(urls)} image(s)")
        return list(urls)
