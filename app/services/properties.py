"""Listing lookup and search."""

import asyncio
import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Property
from app.schemas import ListingSummary
from app.services.storage import StorageClient

logger = logging.getLogger(__name__)

PROPERTY_TYPES = ("apartment", "house", "room", "commercial")


async def get_property(db: AsyncSession, property_id: int) -> Optional[Property]:
    """Get a listing by id, or None."""
    return await db.get(Property, property_id)


async def get_listing(
    db: AsyncSession, storage: StorageClient, property_id: int
) -> Optional[ListingSummary]:
    """Get a listing with all of its images resolved."""
    prop = await get_property(db, property_id)
    if prop is None:
        return None
    return ListingSummary.from_property(prop, await storage.resolve_urls(prop.images))


async def search_properties(
    db: AsyncSession,
    storage: StorageClient,
    city: Optional[str] = None,
    query: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    property_type: Optional[str] = None,
    limit: int = 50,
) -> list[ListingSummary]:
    """Search available, approved listings.

    Featured listings come first, then newest.
    """
    stmt = select(Property).where(
        Property.is_available == True,  # noqa: E712
        Property.approval_status == "approved",
    )

    if city:
        stmt = stmt.where(Property.city.ilike(city))
    if query:
        pattern = f"%{query}%"
        stmt = stmt.where(
            or_(
                Property.title.ilike(pattern),
                Property.address.ilike(pattern),
                Property.description.ilike(pattern),
            )
        )
    if min_price is not None:
        stmt = stmt.where(Property.price_nad >= min_price)
    if max_price is not None:
        stmt = stmt.where(Property.price_nad <= max_price)
    if property_type:
        stmt = stmt.where(Property.property_type == property_type)

    stmt = stmt.order_by(
        Property.featured.desc(), Property.created_at.desc(), Property.id.desc()
    ).limit(limit)

    result = await db.execute(stmt)
    properties = list(result.scalars().all())

    image_lists = await asyncio.gather(
        *(storage.resolve_urls(prop.images) for prop in properties)
    )
    return [
        ListingSummary.from_property(prop, urls)
        for prop, urls in zip(properties, image_lists)
    ]
