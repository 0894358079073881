"""Marketplace services."""

from app.services.storage import StorageClient
from app.services.recently_viewed import RecencyTracker, RECENTLY_VIEWED_CAP
from app.services.saved_properties import SavedPropertyService

__all__ = [
    "StorageClient",
    "RecencyTracker",
    "RECENTLY_VIEWED_CAP",
    "SavedPropertyService",
]
