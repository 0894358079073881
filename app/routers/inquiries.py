"""Routes for tenant inquiries and their chat messages."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models import InquiryStatus, User
from app.schemas import InquirySummary, MessageItem
from app.services import inquiries

router = APIRouter(prefix="/inquiries", tags=["inquiries"])


class InquiryCreate(BaseModel):
    property_id: int
    message: str = Field(min_length=1)
    move_in_date: Optional[date] = None


class StatusBody(BaseModel):
    status: InquiryStatus


class MessageBody(BaseModel):
    content: str = Field(min_length=1)


def _inquiry_response(inquiry, user: User, status_code: int = 200) -> JSONResponse:
    summary = InquirySummary.from_inquiry(inquiry, viewer_id=user.id)
    return JSONResponse(content=summary.to_dict(), status_code=status_code)


@router.get("")
async def list_inquiries(
    role: Optional[str] = Query(default=None, pattern="^(tenant|landlord)$"),
    status: Optional[InquiryStatus] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    """The caller's inquiry threads.

    Without ``role`` both sides are returned, ordered by latest message.
    """
    status_value = status.value if status else None
    if role == "tenant":
        results = await inquiries.list_for_tenant(db, user, status_value)
    elif role == "landlord":
        results = await inquiries.list_for_landlord(db, user, status_value)
    else:
        results = await inquiries.list_conversations(db, user, status_value)

    viewer_id = user.id if user else None
    return JSONResponse(content={
        "count": len(results),
        "inquiries": [
            InquirySummary.from_inquiry(inquiry, viewer_id=viewer_id).to_dict()
            for inquiry in results
        ],
    })


@router.post("")
async def create_inquiry(
    body: InquiryCreate,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    inquiry = await inquiries.create_inquiry(
        db, user, body.property_id, body.message, body.move_in_date
    )
    return _inquiry_response(inquiry, user, status_code=201)


@router.post("/property/{property_id}")
async def open_for_property(
    property_id: int,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    inquiry = await inquiries.get_or_create_for_property(db, user, property_id)
    return _inquiry_response(inquiry, user)


@router.get("/{inquiry_id}")
async def get_inquiry(
    inquiry_id: int,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    return _inquiry_response(await inquiries.get_inquiry(db, user, inquiry_id), user)


@router.post("/{inquiry_id}/status")
async def update_status(
    inquiry_id: int,
    body: StatusBody,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    inquiry = await inquiries.update_status(db, user, inquiry_id, body.status)
    return _inquiry_response(inquiry, user)


@router.get("/{inquiry_id}/messages")
async def list_messages(
    inquiry_id: int,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    messages = await inquiries.list_messages(db, user, inquiry_id)
    return JSONResponse(content={
        "count": len(messages),
        "messages": [MessageItem.from_message(m).to_dict() for m in messages],
    })


@router.post("/{inquiry_id}/messages")
async def send_message(
    inquiry_id: int,
    body: MessageBody,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    message = await inquiries.send_message(db, user, inquiry_id, body.content)
    return JSONResponse(content=MessageItem.from_message(message).to_dict(), status_code=201)


@router.post("/{inquiry_id}/read")
async def mark_as_read(
    inquiry_id: int,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    marked = await inquiries.mark_as_read(db, user, inquiry_id)
    return JSONResponse(content={"marked": marked})
