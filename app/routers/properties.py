"""Routes for listing search and detail pages."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user_id, get_recency_tracker, get_storage
from app.services import RecencyTracker, StorageClient
from app.services.properties import get_listing, search_properties

router = APIRouter(prefix="/properties", tags=["properties"])
templates = Jinja2Templates(directory="app/templates")


@router.get("/search")
async def search(
    request: Request,
    q: Optional[str] = Query(default=None, description="Free-text search"),
    city: Optional[str] = Query(default=None, description="City filter"),
    min_price: Optional[float] = Query(default=None, ge=0),
    max_price: Optional[float] = Query(default=None, ge=0),
    property_type: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """Search available listings.

    Returns HTML partial for HTMX requests, JSON for API calls.
    """
    listings = await search_properties(
        db,
        storage,
        city=city,
        query=q,
        min_price=min_price,
        max_price=max_price,
        property_type=property_type,
        limit=limit,
    )

    if request.headers.get("HX-Request"):
        return templates.TemplateResponse(
            request, "partials/listing_grid.html", {"listings": listings}
        )

    return JSONResponse(content={
        "query": q,
        "city": city,
        "count": len(listings),
        "properties": [listing.to_dict() for listing in listings],
    })


@router.get("/{property_id}")
async def property_detail(
    property_id: int,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
    tracker: RecencyTracker = Depends(get_recency_tracker),
    user_id: Optional[int] = Depends(get_current_user_id),
) -> JSONResponse:
    """Listing detail. Viewing it records a recently-viewed entry."""
    listing = await get_listing(db, storage, property_id)
    if listing is None:
        raise HTTPException(status_code=404, detail="Property not found")

    await tracker.record_view(db, user_id, property_id)

    return JSONResponse(content=listing.to_dict())
