"""Recently viewed listings, bounded per user.

Recording a view is best-effort: it must never block or fail browsing, so
every degraded condition (no session, missing listing, database failure)
comes back as an empty result instead of an exception.
"""

import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Property, RecentlyViewed
from app.schemas import ClearResult, RecentlyViewedItem
from app.services.cache_config import now_ms
from app.services.storage import StorageClient

logger = logging.getLogger(__name__)

RECENTLY_VIEWED_CAP = 20
DEFAULT_RECENT_LIMIT = 10

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class RecencyTracker:
    """Records and lists the listings each user has viewed most recently."""

    def __init__(
        self,
        storage: StorageClient,
        cap: int = RECENTLY_VIEWED_CAP,
        clock: Callable[[], int] = now_ms,
    ):
        self.storage = storage
        self.cap = cap
        self._clock = clock

    async def record_view(
        self, db: AsyncSession, user_id: Optional[int], property_id: int
    ) -> Optional[int]:
        """Record that a user viewed a listing.

        Repeat views refresh the existing record's timestamp. After the write
        the user's history is trimmed to the ``cap`` most recent records.

        Returns:
            The id of the (possibly pre-existing) view record, or None when
            nothing was recorded.
        """
        if user_id is None:
            return None

        try:
            prop = await db.get(Property, property_id)
            if prop is None or not prop.is_available:
                return None

            view_id = await self._upsert_view(db, user_id, property_id, self._clock())
            trimmed = await self._enforce_retention(db, user_id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(f"Failed to record view of property {property_id} for user {user_id}: {e}")
            return None

        if trimmed:
            logger.debug(f"Trimmed {trimmed} old views for user {user_id}")
        return view_id

    async def list_recent(
        self, db: AsyncSession, user_id: Optional[int], limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[RecentlyViewedItem]:
        """List the user's most recently viewed listings, newest first.

        Listing details are read now, not snapshotted at view time. Listings
        that were deleted or are no longer available are skipped, as are
        images that fail to resolve.
        """
        if user_id is None or limit <= 0:
            return []

        try:
            result = await db.execute(
                select(RecentlyViewed.property_id, RecentlyViewed.viewed_at)
                .where(RecentlyViewed.user_id == user_id)
                .order_by(RecentlyViewed.viewed_at.desc(), RecentlyViewed.id.desc())
                .limit(limit)
            )
            views = result.all()
            if not views:
                return []

            result = await db.execute(
                select(Property).where(Property.id.in_([v.property_id for v in views]))
            )
            properties = {p.id: p for p in result.scalars().all()}
        except SQLAlchemyError as e:
            logger.warning(f"Failed to list recently viewed for user {user_id}: {e}")
            return []

        visible = [
            (view, properties[view.property_id])
            for view in views
            if view.property_id in properties and properties[view.property_id].is_available
        ]

        image_lists = await asyncio.gather(
            *(self.storage.resolve_urls(prop.images) for _, prop in visible)
        )

        return [
            RecentlyViewedItem.from_view(prop, urls, view.viewed_at)
            for (view, prop), urls in zip(visible, image_lists)
        ]

    async def clear_all(self, db: AsyncSession, user_id: Optional[int]) -> ClearResult:
        """Delete the user's whole history and report how many records went."""
        if user_id is None:
            return ClearResult(success=False, deleted=0)

        try:
            result = await db.execute(
                delete(RecentlyViewed).where(RecentlyViewed.user_id == user_id)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(f"Failed to clear recently viewed for user {user_id}: {e}")
            return ClearResult(success=False, deleted=0)

        return ClearResult(success=True, deleted=result.rowcount or 0)

    async def remove_one(
        self, db: AsyncSession, user_id: Optional[int], property_id: int
    ) -> bool:
        """Remove one listing from the user's history.

        Returns:
            True if a record was found and removed.
        """
        if user_id is None:
            return False

        try:
            result = await db.execute(
                delete(RecentlyViewed).where(
                    RecentlyViewed.user_id == user_id,
                    RecentlyViewed.property_id == property_id,
                )
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(f"Failed to remove view of property {property_id} for user {user_id}: {e}")
            return False

        return (result.rowcount or 0) > 0

    async def count(self, db: AsyncSession, user_id: int) -> int:
        """Number of live view records for a user."""
        result = await db.execute(
            select(RecentlyViewed.id).where(RecentlyViewed.user_id == user_id)
        )
        return len(result.scalars().all())

    async def _upsert_view(
        self, db: AsyncSession, user_id: int, property_id: int, viewed_at: int
    ) -> int:
        """Insert a view record or refresh its timestamp in one statement."""
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)

        if insert is None:
            return await self._check_then_write_view(db, user_id, property_id, viewed_at)

        stmt = insert(RecentlyViewed).values(
            user_id=user_id, property_id=property_id, viewed_at=viewed_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "property_id"],
            set_={"viewed_at": stmt.excluded.viewed_at},
        ).returning(RecentlyViewed.id)

        result = await db.execute(stmt)
        return result.scalar_one()

    async def _check_then_write_view(
        self, db: AsyncSession, user_id: int, property_id: int, viewed_at: int
    ) -> int:
        # Fallback for dialects without ON CONFLICT; the unique constraint
        # still rejects a concurrent duplicate insert.
        result = await db.execute(
            select(RecentlyViewed.id).where(
                RecentlyViewed.user_id == user_id,
                RecentlyViewed.property_id == property_id,
            )
        )
        existing_id = result.scalar_one_or_none()
        if existing_id is not None:
            await db.execute(
                update(RecentlyViewed)
                .where(RecentlyViewed.id == existing_id)
                .values(viewed_at=viewed_at)
            )
            return existing_id

        view = RecentlyViewed(user_id=user_id, property_id=property_id, viewed_at=viewed_at)
        db.add(view)
        await db.flush()
        return view.id

    async def _enforce_retention(self, db: AsyncSession, user_id: int) -> int:
        """Delete every record beyond the ``cap`` most recent for a user.

        Idempotent: a history already within the cap is left untouched.
        Equal timestamps are ordered by insertion (higher id is newer).
        """
        result = await db.execute(
            select(RecentlyViewed.id)
            .where(RecentlyViewed.user_id == user_id)
            .order_by(RecentlyViewed.viewed_at.desc(), RecentlyViewed.id.desc())
        )
        excess = list(result.scalars().all())[self.cap:]
        if not excess:
            return 0

        await db.execute(delete(RecentlyViewed).where(RecentlyViewed.id.in_(excess)))
        return len(excess)
