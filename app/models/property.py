"""Rental listing database model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, String, Text, DateTime, Float, Integer, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Property(Base):
    """A rentable property listed by a landlord."""

    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(primary_key=True)
    landlord_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    property_type: Mapped[str] = mapped_column(String(30))  # apartment, house, room, commercial
    address: Mapped[str] = mapped_column(Text)
    city: Mapped[str] = mapped_column(String(100), index=True)
    price_nad: Mapped[float] = mapped_column(Float)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    size_sqm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    amenity_names: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    # Storage ids, resolved to URLs at read time
    images: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    is_available: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    approval_status: Mapped[str] = mapped_column(String(20), default="approved", index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
