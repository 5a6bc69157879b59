"""
Media store for product images.

Uploads into Supabase Storage under a content-hashed folder, so the same
file stored twice for an owner/attribute lands on the same path.
"""

import hashlib
import mimetypes
import os
from typing import Optional
import structlog

from config import get_supabase_client, settings
from exceptions import StorageError

logger = structlog.get_logger(__name__)

STORAGE_PREFIX = "product"


class MediaService:
    """Product image persistence."""

    def __init__(self):
        self.db = get_supabase_client()
        self.bucket = settings.media_bucket

    @staticmethod
    def build_path(content: bytes, filename: str, owner_id: str, attribute_code: str) -> str:
        """
        Storage path for a file.

        Returns:
            e.g. "product/42/image/9a0364b9e99bb480dd25e1f0284c8555/tee.jpg"
        """
        digest = hashlib.md5(content).hexdigest()
        safe_filename = filename.replace(" ", "_")
        return f"{STORAGE_PREFIX}/{owner_id}/{attribute_code}/{digest}/{safe_filename}"

    def store(self, path: str, owner_id: str, attribute_code: str) -> str:
        """
        Upload a local file.

        Args:
            path: Local file path (downloaded image)
            owner_id: Product the image belongs to
            attribute_code: Attribute the image is stored for

        Returns:
            Storage path, used as the attribute value

        Raises:
            StorageError: If the file can't be read or uploaded
        """
        filename = os.path.basename(path)
        try:
            with open(path, "rb") as fh:
                content = fh.read()
        except OSError as e:
            raise StorageError(path, f"Cannot read downloaded image: {e}") from e

        storage_path = self.build_path(content, filename, owner_id, attribute_code)
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        logger.debug(
            "uploading_image_to_storage",
            storage_path=storage_path,
            size_bytes=len(content)
        )

        try:
            self.db.storage.from_(self.bucket).upload(
                storage_path,
                content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
        except Exception as e:
            logger.error(
                "image_upload_failed",
                storage_path=storage_path,
                error=str(e)
            )
            raise StorageError(storage_path, f"Failed to upload image: {e}") from e

        logger.info("image_uploaded_to_storage", storage_path=storage_path)
        return storage_path


_media_service: Optional[MediaService] = None


def get_media_service() -> MediaService:
    """Get or create MediaService instance."""
    global _media_service
    if _media_service is None:
        _media_service = MediaService()
    return _media_service
