"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from menumate.core.config import get_settings, Settings, EnvironmentMode
from menumate.core.exceptions import (
    MenuMateError,
    ValidationError,
    ConflictError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "MenuMateError",
    "ValidationError",
    "ConflictError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
]
