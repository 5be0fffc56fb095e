"""
Image Storage Abstract Base Class

Defines the interface for storing uploaded menu images. Validation of
size and type happens here so every provider rejects the same uploads.
"""

from abc import ABC, abstractmethod
from typing import Optional

from menumate.core.config import get_settings
from menumate.core.exceptions import FileTooLargeError, UnsupportedFileTypeError


class BaseImageStorage(ABC):
    """Abstract base class for image storage providers."""

    def __init__(
        self,
        max_bytes: Optional[int] = None,
        allowed_types: Optional[list[str]] = None,
    ) -> None:
        settings = get_settings()
        self.max_bytes = max_bytes or settings.max_upload_bytes
        self.allowed_types = allowed_types or settings.allowed_image_types_list

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    def validate(self, content_type: Optional[str], data: bytes) -> None:
        """
        Reject uploads the platform does not accept.

        Raises:
            UnsupportedFileTypeError: content type is not an accepted image type
            FileTooLargeError: payload exceeds ``max_bytes``
        """
        if not content_type or content_type.lower() not in self.allowed_types:
            raise UnsupportedFileTypeError()
        if len(data) > self.max_bytes:
            raise FileTooLargeError(
                f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB"
            )

    async def read_upload(self, upload) -> bytes:
        """
        Body of an ``UploadFile``, read up to one byte past ``max_bytes``.

        An oversized upload still fails ``validate`` without being buffered whole.
        """
        return await upload.read(self.max_bytes + 1)

    async def store(self, filename: str, content_type: Optional[str], data: bytes) -> str:
        """Validate then save an upload, returning its public URL."""
        self.validate(content_type, data)
        return await self.save(filename, content_type, data)

    @abstractmethod
    async def save(self, filename: str, content_type: str, data: bytes) -> str:
        """
        Persist the bytes.

        Raises:
            StorageProviderError: the provider could not store the file

        Returns:
            Public URL of the stored image
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check provider availability."""
        pass
