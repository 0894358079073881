"""Typed result shapes returned by the service layer.

Rows are converted into these at the persistence boundary so routers and
templates never handle loosely-shaped dicts.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from app.models import Inquiry, Lease, LeaseStatus, Message, Property


@dataclass
class ListingSummary:
    """Current details of a listing, with image ids resolved to URLs."""

    id: int
    title: str
    description: Optional[str]
    price_nad: float
    address: str
    city: str
    bedrooms: Optional[int]
    bathrooms: Optional[int]
    size_sqm: Optional[float]
    property_type: str
    image_urls: list[str] = field(default_factory=list)
    amenity_names: list[str] = field(default_factory=list)
    is_available: bool = True
    featured: bool = False

    @classmethod
    def from_property(cls, prop: Property, image_urls: list[str]) -> "ListingSummary":
        return cls(
            id=prop.id,
            title=prop.title,
            description=prop.description,
            price_nad=prop.price_nad,
            address=prop.address,
            city=prop.city,
            bedrooms=prop.bedrooms,
            bathrooms=prop.bathrooms,
            size_sqm=prop.size_sqm,
            property_type=prop.property_type,
            image_urls=list(image_urls),
            amenity_names=list(prop.amenity_names or []),
            is_available=prop.is_available,
            featured=prop.featured,
        )

    @property
    def main_image(self) -> Optional[str]:
        return self.image_urls[0] if self.image_urls else None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["main_image"] = self.main_image
        return data


@dataclass
class RecentlyViewedItem(ListingSummary):
    """A listing in the recently-viewed feed."""

    viewed_at: int = 0

    @classmethod
    def from_view(
        cls, prop: Property, image_urls: list[str], viewed_at: int
    ) -> "RecentlyViewedItem":
        summary = ListingSummary.from_property(prop, image_urls)
        return cls(**asdict(summary), viewed_at=viewed_at)


@dataclass
class ClearResult:
    """Outcome of clearing a user's recently-viewed history."""

    success: bool
    deleted: int = 0


@dataclass
class LeaseSummary:
    """Lease with the display fields the dashboards need."""

    id: int
    property_id: int
    tenant_id: int
    landlord_id: int
    start_date: date
    end_date: date
    monthly_rent: float
    deposit: Optional[float]
    status: str
    status_label: str
    landlord_notes: Optional[str]
    property_title: Optional[str]
    property_address: Optional[str]
    sent_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    @classmethod
    def from_lease(cls, lease: Lease) -> "LeaseSummary":
        prop = lease.property
        return cls(
            id=lease.id,
            property_id=lease.property_id,
            tenant_id=lease.tenant_id,
            landlord_id=lease.landlord_id,
            start_date=lease.start_date,
            end_date=lease.end_date,
            monthly_rent=lease.monthly_rent,
            deposit=lease.deposit,
            status=lease.status,
            status_label=LeaseStatus(lease.status).label,
            landlord_notes=lease.landlord_notes,
            property_title=prop.title if prop else None,
            property_address=prop.address if prop else None,
            sent_at=lease.sent_at,
            signed_at=lease.signed_at,
            approved_at=lease.approved_at,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("start_date", "end_date", "sent_at", "signed_at", "approved_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data


@dataclass
class MessageItem:
    id: int
    inquiry_id: int
    sender_id: int
    content: str
    created_at: datetime
    read_at: Optional[datetime] = None

    @classmethod
    def from_message(cls, message: Message) -> "MessageItem":
        return cls(
            id=message.id,
            inquiry_id=message.inquiry_id,
            sender_id=message.sender_id,
            content=message.content,
            created_at=message.created_at,
            read_at=message.read_at,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        if self.read_at is not None:
            data["read_at"] = self.read_at.isoformat()
        return data


@dataclass
class InquirySummary:
    """Inquiry as one side of the conversation sees it.

    ``other_party_*`` describe whoever the viewer is talking to, and
    ``updated_at`` is the time of the last message, falling back to when
    the inquiry was opened.
    """

    id: int
    property_id: int
    tenant_id: int
    landlord_id: int
    status: str
    message: Optional[str]
    move_in_date: Optional[date]
    created_at: datetime
    updated_at: datetime
    property_title: Optional[str]
    property_address: Optional[str]
    other_party_id: Optional[int] = None
    other_party_name: Optional[str] = None
    other_party_avatar: Optional[str] = None
    last_message: Optional[MessageItem] = None

    @classmethod
    def from_inquiry(cls, inquiry: Inquiry, viewer_id: Optional[int] = None) -> "InquirySummary":
        prop = inquiry.property
        last = inquiry.messages[-1] if inquiry.messages else None
        other = None
        if viewer_id is not None:
            other = inquiry.landlord if viewer_id == inquiry.tenant_id else inquiry.tenant
        return cls(
            id=inquiry.id,
            property_id=inquiry.property_id,
            tenant_id=inquiry.tenant_id,
            landlord_id=inquiry.landlord_id,
            status=inquiry.status,
            message=inquiry.message,
            move_in_date=inquiry.move_in_date,
            created_at=inquiry.created_at,
            updated_at=last.created_at if last else inquiry.created_at,
            property_title=prop.title if prop else None,
            property_address=prop.address if prop else None,
            other_party_id=other.id if other else None,
            other_party_name=(other.full_name or other.email) if other else None,
            other_party_avatar=other.avatar_url if other else None,
            last_message=MessageItem.from_message(last) if last else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        if self.move_in_date is not None:
            data["move_in_date"] = self.move_in_date.isoformat()
        data["last_message"] = self.last_message.to_dict() if self.last_message else None
        return data
