"""Lease database model and status vocabulary."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String, Text, DateTime, Date, Float, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class LeaseStatus(str, Enum):
    """Lease lifecycle states."""

    DRAFT = "draft"
    SENT_TO_TENANT = "sent_to_tenant"
    TENANT_SIGNED = "tenant_signed"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_REQUESTED = "revision_requested"
    EXPIRED = "expired"
    TERMINATED = "terminated"

    @property
    def label(self) -> str:
        return LEASE_STATUS_LABELS[self]


LEASE_STATUS_LABELS = {
    LeaseStatus.DRAFT: "Draft",
    LeaseStatus.SENT_TO_TENANT: "Sent to Tenant",
    LeaseStatus.TENANT_SIGNED: "Tenant Signed",
    LeaseStatus.APPROVED: "Active",
    LeaseStatus.REJECTED: "Rejected",
    LeaseStatus.REVISION_REQUESTED: "Revision Requested",
    LeaseStatus.EXPIRED: "Expired",
    LeaseStatus.TERMINATED: "Terminated",
}


class Lease(Base):
    """Rental agreement between a landlord and a tenant for one listing."""

    __tablename__ = "leases"

    id: Mapped[int] = mapped_column(primary_key=True)
    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id"), index=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    landlord_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    monthly_rent: Mapped[float] = mapped_column(Float)
    deposit: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(String(30), default=LeaseStatus.DRAFT.value, index=True)
    tenant_signature_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    landlord_signature_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    landlord_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    property: Mapped["Property"] = relationship(lazy="selectin")


from app.models.property import Property
