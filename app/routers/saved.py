"""Routes for saved (bookmarked) listings."""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user_id, get_saved_service
from app.services import SavedPropertyService

router = APIRouter(prefix="/saved", tags=["saved"])


@router.get("")
async def list_saved(
    db: AsyncSession = Depends(get_db),
    service: SavedPropertyService = Depends(get_saved_service),
    user_id: Optional[int] = Depends(get_current_user_id),
) -> JSONResponse:
    listings = await service.list_saved(db, user_id)
    return JSONResponse(content={
        "count": len(listings),
        "properties": [listing.to_dict() for listing in listings],
    })


@router.get("/{property_id}")
async def is_saved(
    property_id: int,
    db: AsyncSession = Depends(get_db),
    service: SavedPropertyService = Depends(get_saved_service),
    user_id: Optional[int] = Depends(get_current_user_id),
) -> JSONResponse:
    saved = await service.is_saved(db, user_id, property_id)
    return JSONResponse(content={"saved": saved})


@router.post("/{property_id}/toggle")
async def toggle_saved(
    property_id: int,
    db: AsyncSession = Depends(get_db),
    service: SavedPropertyService = Depends(get_saved_service),
    user_id: Optional[int] = Depends(get_current_user_id),
) -> JSONResponse:
    """Save or unsave a listing. Requires authentication."""
    saved = await service.toggle(db, user_id, property_id)
    return JSONResponse(content={"saved": saved})
