"""
Local Image Storage

Writes uploads into ``settings.upload_directory`` under a random name and
serves them from ``settings.media_base_url``.
"""

import asyncio
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional

from menumate.core.config import get_settings
from menumate.core.exceptions import StorageProviderError
from menumate.services.storage.base import BaseImageStorage

logger = logging.getLogger(__name__)


class LocalImageStorage(BaseImageStorage):
    """Filesystem-backed image storage."""

    def __init__(
        self,
        directory: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        settings = get_settings()
        self.directory = Path(directory or settings.upload_directory)
        self.base_url = (base_url or settings.media_base_url).rstrip("/")
        logger.info(f"LocalImageStorage initialized ({self.directory})")

    @property
    def provider_name(self) -> str:
        return "local"

    def _target_name(self, content_type: str) -> str:
        # The client filename never picks the extension; the validated type does
        suffix = mimetypes.guess_extension(content_type.lower()) or ""
        return f"{uuid.uuid4().hex}{suffix}"

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def save(self, filename: str, content_type: str, data: bytes) -> str:
        name = self._target_name(content_type)
        path = self.directory / name
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            logger.error(f"Could not write upload {path}: {e}")
            raise StorageProviderError() from e

        logger.info(f"Stored image {name} from upload {filename!r} ({len(data)} bytes)")
        return f"{self.base_url}/{name}"

    async def health_check(self) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return True
