"""Routes for the recently viewed feed."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user_id, get_recency_tracker
from app.services import RecencyTracker
from app.services.recently_viewed import DEFAULT_RECENT_LIMIT

router = APIRouter(prefix="/recently-viewed", tags=["recently-viewed"])
templates = Jinja2Templates(directory="app/templates")


@router.get("")
async def list_recently_viewed(
    request: Request,
    limit: int = Query(default=DEFAULT_RECENT_LIMIT, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    tracker: RecencyTracker = Depends(get_recency_tracker),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """Recently viewed listings, newest first.

    Returns HTML partial for HTMX requests, JSON for API calls. An empty
    feed renders nothing rather than an error.
    """
    items = await tracker.list_recent(db, user_id, limit=limit)

    if request.headers.get("HX-Request"):
        return templates.TemplateResponse(
            request, "partials/recently_viewed.html", {"items": items}
        )

    return JSONResponse(content={
        "count": len(items),
        "items": [item.to_dict() for item in items],
    })


@router.post("/{property_id}")
async def record_view(
    property_id: int,
    db: AsyncSession = Depends(get_db),
    tracker: RecencyTracker = Depends(get_recency_tracker),
    user_id: Optional[int] = Depends(get_current_user_id),
) -> JSONResponse:
    view_id = await tracker.record_view(db, user_id, property_id)
    return JSONResponse(content={"view_id": view_id})


@router.delete("")
async def clear_recently_viewed(
    db: AsyncSession = Depends(get_db),
    tracker: RecencyTracker = Depends(get_recency_tracker),
    user_id: Optional[int] = Depends(get_current_user_id),
) -> JSONResponse:
    result = await tracker.clear_all(db, user_id)
    return JSONResponse(content={"success": result.success, "deleted": result.deleted})


@router.delete("/{property_id}")
async def remove_recently_viewed(
    property_id: int,
    db: AsyncSession = Depends(get_db),
    tracker: RecencyTracker = Depends(get_recency_tracker),
    user_id: Optional[int] = Depends(get_current_user_id),
) -> JSONResponse:
    removed = await tracker.remove_one(db, user_id, property_id)
    return JSONResponse(content={"success": removed})
