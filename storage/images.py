"""
Cloudinary gateway for listing cover images.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict

import cloudinary.uploader
import structlog

from utilities.errors import ImageUploadError

logger = structlog.get_logger(__name__)

# Every cover is normalised to the same 300x400 frame
UPLOAD_OPTIONS: Dict[str, Any] = {
    "overwrite": True,
    "invalidate": True,
    "resource_type": "auto",
    "transformation": [
        {
            "width": 300,
            "height": 400,
            "crop": "fill",
            "gravity": "center",
            "quality": "auto",
        }
    ],
}


@dataclass(frozen=True)
class UploadedImage:
    """Public URL and deletion handle of a hosted image."""
    url: str
    public_id: str


class ImageUploader:
    """
    Uploads and removes images on Cloudinary.

    Credentials are passed with every call rather than through the SDK's
    global configuration. The SDK is blocking, so calls run in a worker thread.
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }

    async def upload(self, image: str) -> UploadedImage:
        """
        Upload an image given as a data URI, base64 payload or remote URL.

        Raises:
            ImageUploadError: If the host rejects the image or returns no URL
        """
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload, image, **UPLOAD_OPTIONS, **self._credentials
            )
        except Exception as e:
            logger.error("Image upload failed", error=str(e))
            raise ImageUploadError() from e

        if not result or not result.get("secure_url"):
            logger.error("Image host returned no URL", result=result)
            raise ImageUploadError()

        logger.debug("Image uploaded", public_id=result.get("public_id"))
        return UploadedImage(url=result["secure_url"], public_id=result["public_id"])

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        """Delete a previously uploaded image by its deletion handle."""
        result = await asyncio.to_thread(
            cloudinary.uploader.destroy, public_id, resource_type="image", **self._credentials
        )
        logger.debug("Image deleted", public_id=public_id, result=result)
        return result
