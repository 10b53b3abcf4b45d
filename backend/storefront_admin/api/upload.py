"""
Upload API Endpoint
Product image uploads (multipart field "images", up to MAX_UPLOAD_FILES files)
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from storefront_admin.core.auth import get_current_user
from storefront_admin.services.upload_service import IncomingImage, UploadService
from storefront_admin.api.deps import PASSTHROUGH_ERRORS, get_upload_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/upload",
    tags=["Upload"],
    dependencies=[Depends(get_current_user)],
)


@router.post("")
async def upload_images(
    images: List[UploadFile] = File(..., description="Image files (jpeg, jpg, png)"),
    service: UploadService = Depends(get_upload_service),
):
    """
    Upload product images

    Returns:
        {"image_urls": [...]} in the order the files were sent
    """
    try:
        # Count and declared sizes are checked before any file is read
        service.check_count(len(images))
        for image in images:
            if image.size is not None:
                service.check_size(image.filename, image.size)

        # One byte past the limit is enough for validate() to reject the file
        incoming = [
            IncomingImage(
                filename=image.filename or "",
                content_type=image.content_type or "",
                content=await image.read(service.max_size_bytes + 1),
            )
            for image in images
        ]
        urls = await service.upload(incoming)

    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error uploading images: {e}")
        raise HTTPException(status_code=500, detail="Server error uploading images")

    return {"image_urls": urls}
