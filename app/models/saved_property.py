"""Saved property model for tenant bookmarks."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class SavedProperty(Base):
    """User bookmark for a listing."""

    __tablename__ = "saved_properties"

    # Each user can only save a listing once
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_saved_user_property"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    property: Mapped["Property"] = relationship(lazy="selectin")


# Import at bottom to avoid circular imports
from app.models.property import Property
