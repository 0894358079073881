"""Database models."""

from app.models.user import User, UserRole
from app.models.property import Property
from app.models.recently_viewed import RecentlyViewed
from app.models.saved_property import SavedProperty
from app.models.lease import Lease, LeaseStatus, LEASE_STATUS_LABELS
from app.models.inquiry import Inquiry, InquiryStatus, Message

__all__ = [
    "User",
    "UserRole",
    "Property",
    "RecentlyViewed",
    "SavedProperty",
    "Lease",
    "LeaseStatus",
    "LEASE_STATUS_LABELS",
    "Inquiry",
    "InquiryStatus",
    "Message",
]
