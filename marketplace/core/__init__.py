# Core modules

from .config import settings, get_settings, Settings
from .store import DocumentStore
from .errors import (
    MarketplaceError,
    ValidationError,
    NotFoundError,
    ConflictError,
    UpstreamError,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "DocumentStore",
    "MarketplaceError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "UpstreamError",
]
