"""FastAPI dependencies shared by the routers."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import User
from app.services import RecencyTracker, SavedPropertyService, StorageClient

USER_HEADER = "X-User-Id"


async def get_current_user(
    request: Request, db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Resolve the caller from the user header.

    A missing, malformed or unknown id means the caller is unauthenticated.
    """
    raw = request.headers.get(USER_HEADER)
    if not raw:
        return None
    try:
        user_id = int(raw)
    except ValueError:
        return None
    return await db.get(User, user_id)


async def get_current_user_id(
    user: Optional[User] = Depends(get_current_user),
) -> Optional[int]:
    return user.id if user is not None else None


def get_storage(request: Request) -> StorageClient:
    return request.app.state.storage


def get_recency_tracker(request: Request) -> RecencyTracker:
    return request.app.state.recency_tracker


def get_saved_service(request: Request) -> SavedPropertyService:
    return request.app.state.saved_properties
