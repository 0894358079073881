"""Recently viewed listing model."""

from sqlalchemy import BigInteger, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class RecentlyViewed(Base):
    """One user's most recent view of one listing.

    ``viewed_at`` is wall-clock epoch milliseconds and is refreshed in place
    on every repeat view. ``id`` grows with insertion order and breaks ties
    between equal timestamps.
    """

    __tablename__ = "recently_viewed"

    # At most one row per (user, property); writes go through an upsert
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_recently_viewed_user_property"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), index=True
    )
    viewed_at: Mapped[int] = mapped_column(BigInteger, index=True)
