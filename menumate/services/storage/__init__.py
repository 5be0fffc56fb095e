"""
Image Storage Factory

Usage:
    from menumate.services.storage import get_image_storage

    storage = get_image_storage()
    url = await storage.store(upload.filename, upload.content_type, data)
"""

import logging
from functools import lru_cache

from menumate.services.storage.base import BaseImageStorage
from menumate.services.storage.local import LocalImageStorage

logger = logging.getLogger(__name__)


@lru_cache()
def get_image_storage() -> BaseImageStorage:
    """Get the configured image storage."""
    logger.info("Image Storage: Using LocalImageStorage")
    return LocalImageStorage()


__all__ = [
    "get_image_storage",
    "BaseImageStorage",
    "LocalImageStorage",
]
