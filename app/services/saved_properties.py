"""Saved (bookmarked) listings."""

import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Property, SavedProperty
from app.schemas import ListingSummary
from app.services.errors import NotAuthenticated, NotFound
from app.services.storage import StorageClient

logger = logging.getLogger(__name__)


class SavedPropertyService:
    """Toggle, check and list a user's saved listings."""

    def __init__(self, storage: StorageClient):
        self.storage = storage

    async def toggle(
        self, db: AsyncSession, user_id: Optional[int], property_id: int
    ) -> bool:
        """Save the listing if unsaved, unsave it otherwise.

        Returns:
            True if the listing is saved after the call.
        """
        if user_id is None:
            raise NotAuthenticated()

        existing = await self._find(db, user_id, property_id)
        if existing is not None:
            await db.delete(existing)
            await db.commit()
            return False

        if await db.get(Property, property_id) is None:
            raise NotFound("Property not found")

        db.add(SavedProperty(user_id=user_id, property_id=property_id))
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent toggle saved it first
            await db.rollback()
            logger.debug(f"Property {property_id} already saved by user {user_id}")
        return True

    async def is_saved(
        self, db: AsyncSession, user_id: Optional[int], property_id: int
    ) -> bool:
        if user_id is None:
            return False
        try:
            return await self._find(db, user_id, property_id) is not None
        except SQLAlchemyError as e:
            logger.warning(f"Failed to check saved state for user {user_id}: {e}")
            return False

    async def list_saved(
        self, db: AsyncSession, user_id: Optional[int]
    ) -> list[ListingSummary]:
        """List saved listings, newest save first, with the main image resolved."""
        if user_id is None:
            return []

        try:
            result = await db.execute(
                select(SavedProperty)
                .where(SavedProperty.user_id == user_id)
                .order_by(SavedProperty.created_at.desc(), SavedProperty.id.desc())
            )
            saved = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.warning(f"Failed to list saved properties for user {user_id}: {e}")
            return []

        properties = [s.property for s in saved if s.property is not None]
        main_images = await asyncio.gather(
            *(self.storage.resolve_urls((prop.images or [])[:1]) for prop in properties)
        )
        return [
            ListingSummary.from_property(prop, urls)
            for prop, urls in zip(properties, main_images)
        ]

    async def _find(
        self, db: AsyncSession, user_id: int, property_id: int
    ) -> Optional[SavedProperty]:
        result = await db.execute(
            select(SavedProperty).where(
                SavedProperty.user_id == user_id,
                SavedProperty.property_id == property_id,
            )
        )
        return result.scalar_one_or_none()
