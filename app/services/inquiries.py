"""Tenant inquiries about listings and the chat messages inside them.

A tenant has at most one inquiry per listing; asking again adds a message
to the existing thread. Operations on a specific inquiry are limited to
its tenant and landlord. Listing calls answer an empty list for anonymous
callers.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Inquiry, InquiryStatus, Message, Property, User
from app.services.errors import NotAuthenticated, NotFound, PermissionDenied

logger = logging.getLogger(__name__)


def _require_user(user: Optional[User]) -> User:
    if user is None:
        raise NotAuthenticated()
    return user


async def _get_participant_inquiry(
    db: AsyncSession, user: Optional[User], inquiry_id: int
) -> tuple[Inquiry, int]:
    user_id = _require_user(user).id
    inquiry = await db.get(Inquiry, inquiry_id)
    if inquiry is None:
        raise NotFound("Inquiry not found")
    if not inquiry.is_participant(user_id):
        raise PermissionDenied("Not a participant in this inquiry")
    return inquiry, user_id


async def _find(db: AsyncSession, tenant_id: int, property_id: int) -> Optional[Inquiry]:
    result = await db.execute(
        select(Inquiry).where(
            Inquiry.tenant_id == tenant_id,
            Inquiry.property_id == property_id,
        )
    )
    return result.scalar_one_or_none()


async def _find_or_open(
    db: AsyncSession, user: Optional[User], property_id: int, message: Optional[str]
) -> tuple[Inquiry, int, bool]:
    """Return the caller's inquiry for a listing, opening one if needed.

    Returns:
        The inquiry, the caller's id, and whether it was just created.
    """
    user_id = _require_user(user).id

    prop = await db.get(Property, property_id)
    if prop is None:
        raise NotFound("Property not found")
    if prop.landlord_id == user_id:
        raise PermissionDenied("Landlords cannot inquire about their own listing")

    existing = await _find(db, user_id, property_id)
    if existing is not None:
        return existing, user_id, False

    inquiry = Inquiry(
        property_id=property_id,
        tenant_id=user_id,
        landlord_id=prop.landlord_id,
        message=message or None,
        status=InquiryStatus.PENDING.value,
        property=prop,
        tenant=user,
        landlord=await db.get(User, prop.landlord_id),
        messages=[],
    )
    db.add(inquiry)
    try:
        await db.flush()
    except IntegrityError:
        # A concurrent request opened the thread first
        await db.rollback()
        logger.debug(f"Inquiry for property {property_id} by user {user_id} already exists")
        return await _find(db, user_id, property_id), user_id, False
    return inquiry, user_id, True


async def create_inquiry(
    db: AsyncSession,
    user: Optional[User],
    property_id: int,
    message: str,
    move_in_date: Optional[date] = None,
) -> Inquiry:
    """Ask about a listing, reusing the existing thread if there is one.

    The text is always posted as a chat message from the tenant. A given
    ``move_in_date`` replaces the one already on the thread.
    """
    inquiry, user_id, created = await _find_or_open(db, user, property_id, message)
    if move_in_date is not None:
        inquiry.move_in_date = move_in_date
    inquiry.messages.append(Message(sender_id=user_id, content=message))
    await db.commit()

    if created:
        logger.info(f"Inquiry {inquiry.id} opened for property {property_id}")
    return inquiry


async def get_or_create_for_property(
    db: AsyncSession, user: Optional[User], property_id: int
) -> Inquiry:
    """Open an empty thread so the chat screen has something to show."""
    inquiry, _, created = await _find_or_open(db, user, property_id, None)
    if created:
        await db.commit()
        logger.info(f"Inquiry {inquiry.id} opened for property {property_id}")
    return inquiry


async def get_inquiry(db: AsyncSession, user: Optional[User], inquiry_id: int) -> Inquiry:
    inquiry, _ = await _get_participant_inquiry(db, user, inquiry_id)
    return inquiry


async def update_status(
    db: AsyncSession, user: Optional[User], inquiry_id: int, status: InquiryStatus
) -> Inquiry:
    inquiry, user_id = await _get_participant_inquiry(db, user, inquiry_id)
    if inquiry.landlord_id != user_id:
        raise PermissionDenied("Only the landlord can update the inquiry")

    inquiry.status = InquiryStatus(status).value
    await db.commit()
    logger.info(f"Inquiry {inquiry.id} {inquiry.status}")
    return inquiry


async def list_for_tenant(
    db: AsyncSession, user: Optional[User], status: Optional[str] = None
) -> list[Inquiry]:
    if user is None:
        return []
    return await _list(db, Inquiry.tenant_id == user.id, status)


async def list_for_landlord(
    db: AsyncSession, user: Optional[User], status: Optional[str] = None
) -> list[Inquiry]:
    if user is None:
        return []
    return await _list(db, Inquiry.landlord_id == user.id, status)


async def list_conversations(
    db: AsyncSession, user: Optional[User], status: Optional[str] = None
) -> list[Inquiry]:
    """Every thread the user is part of, most recent activity first."""
    if user is None:
        return []
    inquiries = await _list(
        db, or_(Inquiry.tenant_id == user.id, Inquiry.landlord_id == user.id), status
    )
    return sorted(inquiries, key=last_activity, reverse=True)


async def _list(db: AsyncSession, condition, status: Optional[str]) -> list[Inquiry]:
    stmt = select(Inquiry).where(condition)
    if status:
        stmt = stmt.where(Inquiry.status == status)
    result = await db.execute(stmt.order_by(Inquiry.created_at.desc(), Inquiry.id.desc()))
    return list(result.scalars().all())


def last_activity(inquiry: Inquiry) -> tuple[datetime, int]:
    if inquiry.messages:
        last = inquiry.messages[-1]
        return last.created_at, last.id
    return inquiry.created_at, 0


async def list_messages(db: AsyncSession, user: Optional[User], inquiry_id: int) -> list[Message]:
    """Messages in a thread, oldest first."""
    inquiry, _ = await _get_participant_inquiry(db, user, inquiry_id)
    return list(inquiry.messages)


async def send_message(
    db: AsyncSession, user: Optional[User], inquiry_id: int, content: str
) -> Message:
    inquiry, user_id = await _get_participant_inquiry(db, user, inquiry_id)

    message = Message(sender_id=user_id, content=content)
    inquiry.messages.append(message)
    await db.commit()
    return message


async def mark_as_read(db: AsyncSession, user: Optional[User], inquiry_id: int) -> int:
    """Mark the other party's unread messages as read.

    Returns:
        Number of messages marked.
    """
    inquiry, user_id = await _get_participant_inquiry(db, user, inquiry_id)

    now = datetime.utcnow()
    unread = [m for m in inquiry.messages if m.sender_id != user_id and m.read_at is None]
    for message in unread:
        message.read_at = now

    await db.commit()
    return len(unread)
