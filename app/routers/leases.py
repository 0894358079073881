"""Routes for the lease lifecycle."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models import LeaseStatus, User
from app.schemas import LeaseSummary
from app.services import leases

router = APIRouter(prefix="/leases", tags=["leases"])


class LeaseCreate(BaseModel):
    property_id: int
    tenant_id: int
    start_date: date
    end_date: date
    monthly_rent: float = Field(gt=0)
    deposit: Optional[float] = Field(default=None, ge=0)


class SignatureBody(BaseModel):
    signature_data: str = Field(min_length=1)


class DecisionBody(BaseModel):
    approved: bool
    signature_data: Optional[str] = None
    notes: Optional[str] = None


class NotesBody(BaseModel):
    notes: str = Field(min_length=1)


class TerminateBody(BaseModel):
    reason: Optional[str] = None


def _lease_response(lease, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=LeaseSummary.from_lease(lease).to_dict(), status_code=status_code)


@router.get("")
async def list_leases(
    role: Optional[str] = Query(default=None, pattern="^(tenant|landlord)$"),
    status: Optional[LeaseStatus] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    """Leases for the dashboards, optionally filtered by role and status."""
    results = await leases.list_for_user(
        db, user, role=role, status=status.value if status else None
    )
    return JSONResponse(content={
        "count": len(results),
        "leases": [LeaseSummary.from_lease(lease).to_dict() for lease in results],
    })


@router.post("")
async def create_lease(
    body: LeaseCreate,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    lease = await leases.create_lease(
        db,
        user,
        property_id=body.property_id,
        tenant_id=body.tenant_id,
        start_date=body.start_date,
        end_date=body.end_date,
        monthly_rent=body.monthly_rent,
        deposit=body.deposit,
    )
    return _lease_response(lease, status_code=201)


@router.post("/{lease_id}/send")
async def send_lease(
    lease_id: int,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    return _lease_response(await leases.send_to_tenant(db, user, lease_id))


@router.post("/{lease_id}/sign")
async def sign_lease(
    lease_id: int,
    body: SignatureBody,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    return _lease_response(await leases.tenant_sign(db, user, lease_id, body.signature_data))


@router.post("/{lease_id}/decision")
async def decide_lease(
    lease_id: int,
    body: DecisionBody,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    lease = await leases.landlord_decision(
        db, user, lease_id, body.approved, body.signature_data, body.notes
    )
    return _lease_response(lease)


@router.post("/{lease_id}/revision")
async def request_revision(
    lease_id: int,
    body: NotesBody,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    return _lease_response(await leases.request_revision(db, user, lease_id, body.notes))


@router.post("/{lease_id}/terminate")
async def terminate_lease(
    lease_id: int,
    body: TerminateBody,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_current_user),
) -> JSONResponse:
    return _lease_response(await leases.terminate(db, user, lease_id, body.reason))
