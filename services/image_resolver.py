"""
Image resolver.

Downloads Shopify images into a scratch directory, stores each one in the
media backend right away and removes the scratch copy. Within one product,
images are cached by filename so a picture shared by the product and its
variants is stored once.
"""

import os
from pathlib import Path
from typing import Callable, Optional, Sequence
import structlog

from config import settings
from models.scope import ScopedValueSet
from services.run_context import RunContext
from services.scope_classifier import place
from utils.text_utils import filename_from_url
from exceptions import StorageError

logger = structlog.get_logger(__name__)

# url -> bytes, or None when the download failed
Downloader = Callable[[str], Optional[bytes]]


class ImageResolver:
    """
    Fetch, store and place product images.

    Usage:
        resolver = ImageResolver(client.download, get_media_service())
        cache: dict[str, str] = {}
        values = resolver.process_mapped_images(attrs, image_urls, owner_id, cache, context)
    """

    def __init__(self, downloader: Downloader, media_store, tmp_dir: Optional[str] = None):
        self.downloader = downloader
        self.media_store = media_store
        self.tmp_dir = Path(tmp_dir or settings.image_tmp_dir)

    def _ensure_tmp_dir(self) -> Path:
        try:
            self.tmp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(str(self.tmp_dir), f"Cannot create image directory: {e}") from e

        if not os.access(self.tmp_dir, os.W_OK):
            raise StorageError(str(self.tmp_dir), f"{self.tmp_dir} must be writable")
        return self.tmp_dir

    def fetch(self, url: Optional[str]) -> Optional[str]:
        """
        Download an image into the scratch directory.

        Args:
            url: Image URL

        Returns:
            Local path, or None when there is no URL or the download failed

        Raises:
            StorageError: If the scratch directory is unusable
        """
        filename = filename_from_url(url)
        if not filename:
            return None

        tmp_dir = self._ensure_tmp_dir()
        content = self.downloader(url)
        if content is None:
            logger.warning("image_download_failed", url=url)
            return None

        local_path = tmp_dir / filename
        try:
            local_path.write_bytes(content)
        except OSError as e:
            raise StorageError(str(local_path), f"Cannot write image: {e}") from e

        return str(local_path)

    def store(self, path: str, attribute_code: str, owner_id: str) -> str:
        """Store a downloaded file for a product attribute; returns the reference."""
        return self.media_store.store(path, str(owner_id), attribute_code)

    def fetch_and_store(self, url: Optional[str], attribute_code: str, owner_id: str) -> Optional[str]:
        """
        Download one image, store it and remove the scratch file.

        Returns:
            Reference, or None when there is no image or it could not be fetched
        """
        path = self.fetch(url)
        if path is None:
            return None
        try:
            return self.store(path, attribute_code, owner_id)
        finally:
            Path(path).unlink(missing_ok=True)

    def process_mapped_images(
        self,
        image_attributes: Sequence[str],
        image_urls: Sequence[Optional[str]],
        owner_id: str,
        cache: dict[str, str],
        context: RunContext,
        title: str = ""
    ) -> Optional[ScopedValueSet]:
        """
        Pair image attributes with product images by position.

        Each image is stored as soon as it is downloaded and recorded in
        cache by filename. Attributes without an image get "".

        Returns:
            ScopedValueSet, or None when a required image attribute has no image
        """
        values = ScopedValueSet()

        for index, code in enumerate(image_attributes):
            attribute = context.attributes.resolve(code)
            url = image_urls[index] if index < len(image_urls) else None
            reference = self.fetch_and_store(url, code, owner_id)

            if not reference:
                if attribute is not None and attribute.is_required:
                    logger.warning("required_image_missing", attribute=code, title=title)
                    return None
                place(values, attribute, code, "")
                continue

            cache[filename_from_url(url)] = reference
            place(values, attribute, code, reference)

        return values

    def resolve_variant_image(
        self,
        url: Optional[str],
        owner_id: str,
        attribute_code: str,
        cache: dict[str, str]
    ) -> Optional[str]:
        """
        Get the stored reference for a variant image.

        Reuses a reference already stored for this product, otherwise
        fetches and stores the image.

        Returns:
            Reference, or None when there is no image or it could not be fetched
        """
        filename = filename_from_url(url)
        if not filename:
            return None
        if filename in cache:
            return cache[filename]

        reference = self.fetch_and_store(url, attribute_code, owner_id)
        if reference is not None:
            cache[filename] = reference
        return reference
