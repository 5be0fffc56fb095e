"""
Application Exceptions

Every failure a request handler can report maps to one of these.
Handlers registered in main.py turn them into the standard
``{"success": false, "message": ...}`` envelope.
"""

from typing import Optional


class MenuMateError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MenuMateError):
    """Malformed or missing input."""
    status_code = 400
    default_message = "Invalid request."


class ConflictError(MenuMateError):
    """Business rule violation, e.g. a duplicate review."""
    status_code = 400
    default_message = "Request conflicts with the current state."


class AuthenticationError(MenuMateError):
    status_code = 401
    default_message = "Not authorized, please log in."


class AuthorizationError(MenuMateError):
    """Authenticated but not permitted."""
    status_code = 403
    default_message = "Access denied."


class NotFoundError(MenuMateError):
    status_code = 404
    default_message = "Resource not found."


# =============================================================================
# UPLOADS
# =============================================================================

class UploadError(MenuMateError):
    """Known upload failure, always reported as a bad request."""
    status_code = 400
    default_message = "Image upload failed. Please try again."


class FileTooLargeError(UploadError):
    default_message = "File too large. Maximum size is 5MB"


class UnsupportedFileTypeError(UploadError):
    default_message = "Only image files are allowed"


class StorageProviderError(UploadError):
    default_message = "Image upload failed. Please try again."
