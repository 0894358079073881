"""Lease lifecycle: drafting, signing, approval, termination and expiry.

Status changes are only allowed along these edges::

    draft -> sent_to_tenant -> tenant_signed -> approved | rejected
    tenant_signed -> revision_requested -> tenant_signed
    approved -> expired
    any open status -> terminated

Approving a lease takes the listing off the market; termination and expiry
put it back.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Lease, LeaseStatus, Property, User
from app.services.errors import (
    InvalidInput,
    InvalidTransition,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

SIGNABLE_STATUSES = (LeaseStatus.SENT_TO_TENANT, LeaseStatus.REVISION_REQUESTED)

TERMINATABLE_STATUSES = (
    LeaseStatus.DRAFT,
    LeaseStatus.SENT_TO_TENANT,
    LeaseStatus.TENANT_SIGNED,
    LeaseStatus.REVISION_REQUESTED,
    LeaseStatus.APPROVED,
)


def _require_user(user: Optional[User]) -> User:
    if user is None:
        raise NotAuthenticated()
    return user


async def _get_lease(db: AsyncSession, lease_id: int) -> Lease:
    lease = await db.get(Lease, lease_id)
    if lease is None:
        raise NotFound("Lease not found")
    return lease


def _require_status(lease: Lease, allowed: tuple, message: str) -> None:
    if LeaseStatus(lease.status) not in allowed:
        raise InvalidTransition(message)


async def _set_availability(db: AsyncSession, property_id: int, available: bool) -> None:
    prop = await db.get(Property, property_id)
    if prop is not None:
        prop.is_available = available


async def create_lease(
    db: AsyncSession,
    user: Optional[User],
    property_id: int,
    tenant_id: int,
    start_date: date,
    end_date: date,
    monthly_rent: float,
    deposit: Optional[float] = None,
) -> Lease:
    """Draft a new lease. Only the listing's landlord (or an admin) may."""
    user = _require_user(user)

    prop = await db.get(Property, property_id)
    if prop is None:
        raise NotFound("Property not found")
    if prop.landlord_id != user.id and not user.is_admin:
        raise PermissionDenied("Only the property owner can create leases")
    if await db.get(User, tenant_id) is None:
        raise NotFound("Tenant not found")
    if end_date <= start_date:
        raise InvalidInput("Lease must end after it starts")

    lease = Lease(
        property_id=property_id,
        tenant_id=tenant_id,
        landlord_id=prop.landlord_id,
        start_date=start_date,
        end_date=end_date,
        monthly_rent=monthly_rent,
        deposit=deposit,
        status=LeaseStatus.DRAFT.value,
        property=prop,
    )
    db.add(lease)
    await db.commit()
    await db.refresh(lease)
    logger.info(f"Lease {lease.id} drafted for property {property_id}")
    return lease


async def send_to_tenant(db: AsyncSession, user: Optional[User], lease_id: int) -> Lease:
    user = _require_user(user)
    lease = await _get_lease(db, lease_id)
    if lease.landlord_id != user.id:
        raise PermissionDenied("Only the landlord can send the lease")
    _require_status(lease, (LeaseStatus.DRAFT,), "Only draft leases can be sent")

    lease.status = LeaseStatus.SENT_TO_TENANT.value
    lease.sent_at = datetime.utcnow()
    await db.commit()
    return lease


async def tenant_sign(
    db: AsyncSession, user: Optional[User], lease_id: int, signature_data: str
) -> Lease:
    user = _require_user(user)
    lease = await _get_lease(db, lease_id)
    if lease.tenant_id != user.id:
        raise PermissionDenied("Only the tenant can sign")
    _require_status(lease, SIGNABLE_STATUSES, "Lease not ready for signing")

    lease.status = LeaseStatus.TENANT_SIGNED.value
    lease.tenant_signature_data = signature_data
    lease.signed_at = datetime.utcnow()
    await db.commit()
    return lease


async def landlord_decision(
    db: AsyncSession,
    user: Optional[User],
    lease_id: int,
    approved: bool,
    signature_data: Optional[str] = None,
    notes: Optional[str] = None,
) -> Lease:
    """Approve or reject a tenant-signed lease."""
    user = _require_user(user)
    lease = await _get_lease(db, lease_id)
    if lease.landlord_id != user.id:
        raise PermissionDenied("Only the landlord can approve")
    _require_status(lease, (LeaseStatus.TENANT_SIGNED,), "Lease not ready for approval")

    lease.landlord_notes = notes
    if approved:
        lease.status = LeaseStatus.APPROVED.value
        lease.landlord_signature_data = signature_data
        lease.approved_at = datetime.utcnow()
        await _set_availability(db, lease.property_id, False)
    else:
        lease.status = LeaseStatus.REJECTED.value

    await db.commit()
    logger.info(f"Lease {lease.id} {lease.status}")
    return lease


async def request_revision(
    db: AsyncSession, user: Optional[User], lease_id: int, notes: str
) -> Lease:
    user = _require_user(user)
    lease = await _get_lease(db, lease_id)
    if lease.landlord_id != user.id:
        raise PermissionDenied("Only the landlord can request revisions")
    _require_status(lease, (LeaseStatus.TENANT_SIGNED,), "Lease not currently in review")

    lease.status = LeaseStatus.REVISION_REQUESTED.value
    lease.landlord_notes = notes
    await db.commit()
    return lease


async def terminate(
    db: AsyncSession, user: Optional[User], lease_id: int, reason: Optional[str] = None
) -> Lease:
    user = _require_user(user)
    lease = await _get_lease(db, lease_id)
    if lease.landlord_id != user.id and not user.is_admin:
        raise PermissionDenied("Only the landlord can terminate leases")
    _require_status(lease, TERMINATABLE_STATUSES, "Lease is already closed")

    lease.status = LeaseStatus.TERMINATED.value
    lease.landlord_notes = reason
    await _set_availability(db, lease.property_id, True)
    await db.commit()
    logger.info(f"Lease {lease.id} terminated")
    return lease


async def check_expired(db: AsyncSession, today: Optional[date] = None) -> int:
    """Expire every approved lease that ended before ``today``.

    Returns:
        Number of leases expired.
    """
    if today is None:
        today = date.today()

    result = await db.execute(
        select(Lease).where(
            Lease.status == LeaseStatus.APPROVED.value,
            Lease.end_date < today,
        )
    )
    expired = list(result.scalars().all())

    for lease in expired:
        lease.status = LeaseStatus.EXPIRED.value
        await _set_availability(db, lease.property_id, True)

    await db.commit()
    if expired:
        logger.info(f"Expired {len(expired)} leases")
    return len(expired)


async def list_for_user(
    db: AsyncSession,
    user: Optional[User],
    role: Optional[str] = None,
    status: Optional[str] = None,
) -> list[Lease]:
    """List leases where the user is tenant and/or landlord, newest first."""
    user = _require_user(user)

    if role == "tenant":
        condition = Lease.tenant_id == user.id
    elif role == "landlord":
        condition = Lease.landlord_id == user.id
    else:
        condition = or_(Lease.tenant_id == user.id, Lease.landlord_id == user.id)

    stmt = select(Lease).where(condition)
    if status:
        stmt = stmt.where(Lease.status == status)

    result = await db.execute(stmt.order_by(Lease.created_at.desc(), Lease.id.desc()))
    return list(result.scalars().all())
