"""Inquiry and message models for tenant-landlord chat."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String, Text, DateTime, Date, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class InquiryStatus(str, Enum):
    """Where the landlord has put an inquiry."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Inquiry(Base):
    """A tenant's conversation with a landlord about one listing."""

    __tablename__ = "inquiries"

    # One thread per tenant and listing
    __table_args__ = (
        UniqueConstraint("tenant_id", "property_id", name="uq_inquiry_tenant_property"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id"), index=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    landlord_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    move_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=InquiryStatus.PENDING.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    property: Mapped["Property"] = relationship(lazy="selectin")
    tenant: Mapped["User"] = relationship(foreign_keys=[tenant_id], lazy="selectin")
    landlord: Mapped["User"] = relationship(foreign_keys=[landlord_id], lazy="selectin")
    messages: Mapped[list["Message"]] = relationship(
        back_populates="inquiry", lazy="selectin", order_by="Message.id"
    )

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.tenant_id, self.landlord_id)


class Message(Base):
    """One chat message inside an inquiry."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    inquiry_id: Mapped[int] = mapped_column(Integer, ForeignKey("inquiries.id"), index=True)
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    content: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    inquiry: Mapped["Inquiry"] = relationship(back_populates="messages")


from app.models.property import Property
from app.models.user import User
