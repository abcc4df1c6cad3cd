"""
Core module initialization.
Exports configuration, logging utilities and error types.
"""

from app.core.config import get_settings, Settings, EnvironmentMode, StorageBackend
from app.core.exceptions import (
    OrderError,
    ValidationError,
    NotFoundError,
    ConflictError,
    StorageError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "StorageBackend",
    "OrderError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StorageError",
]
