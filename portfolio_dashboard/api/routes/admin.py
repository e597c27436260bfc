"""
Admin API Routes
Day-scoped login plus investor and allocation writes.
"""

import logging
from datetime import timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response

from portfolio_dashboard.api.dependencies import (
    admin_gate_dependency,
    investor_service,
    presented_admin_token,
    require_admin,
)
from portfolio_dashboard.config import settings
from portfolio_dashboard.domain.models import Allocation
from portfolio_dashboard.domain.schemas.portfolio import (
    AdminSessionResponse,
    AllocationCreateRequest,
    AllocationDeleteRequest,
    AllocationResponse,
    AllocationSchema,
    AllocationUpdateRequest,
    InvestorNameRequest,
    LoginRequest,
    OkResponse,
)
from portfolio_dashboard.domain.services.admin_gate import AdminGate
from portfolio_dashboard.services.investor_service import InvestorService

logger = logging.getLogger(__name__)
router = APIRouter()


def _as_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _allocation_schema(allocation: Allocation) -> AllocationSchema:
    return AllocationSchema(
        id=allocation.id,
        symbol=allocation.symbol,
        invested=allocation.amount_invested,
        shares=allocation.shares,
        date_invested=allocation.date_invested,
    )


# ----------------------------------------------------------------------
# SESSION
# ----------------------------------------------------------------------

@router.post("/login", response_model=OkResponse, response_model_exclude_none=True)
async def login(
    response: Response,
    payload: Optional[LoginRequest] = Body(default=None),
    gate: AdminGate = Depends(admin_gate_dependency),
):
    payload = payload or LoginRequest()
    token = gate.issue(payload.password)
    if token is None:
        raise HTTPException(status_code=401, detail="Invalid password")

    response.set_cookie(
        key=settings.ADMIN_COOKIE_NAME,
        value=token.value,
        max_age=token.max_age(gate.now()),
        expires=token.expires_at.astimezone(timezone.utc),
        httponly=True,
        samesite="lax",
        secure=settings.APP_ENV == "production",
        path="/",
    )
    return OkResponse()


@router.post("/logout", response_model=OkResponse, response_model_exclude_none=True)
async def logout(response: Response):
    response.delete_cookie(key=settings.ADMIN_COOKIE_NAME, path="/")
    return OkResponse()


@router.get("/session", response_model=AdminSessionResponse)
async def session(
    token: Optional[str] = Depends(presented_admin_token),
    gate: AdminGate = Depends(admin_gate_dependency),
):
    return AdminSessionResponse(is_admin=gate.verify(token))


# ----------------------------------------------------------------------
# INVESTORS
# ----------------------------------------------------------------------

@router.post(
    "/investors",
    response_model=OkResponse,
    dependencies=[Depends(require_admin)],
)
async def create_investor(
    payload: Optional[InvestorNameRequest] = Body(default=None),
    service: InvestorService = Depends(investor_service),
):
    payload = payload or InvestorNameRequest()
    slug = await service.create_investor(payload.name)
    return OkResponse(slug=slug)


@router.patch(
    "/investors/{slug}",
    response_model=OkResponse,
    dependencies=[Depends(require_admin)],
)
async def rename_investor(
    slug: str,
    payload: Optional[InvestorNameRequest] = Body(default=None),
    service: InvestorService = Depends(investor_service),
):
    payload = payload or InvestorNameRequest()
    new_slug = await service.rename_investor(slug, payload.name)
    return OkResponse(slug=new_slug)


@router.delete(
    "/investors/{slug}",
    response_model=OkResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def delete_investor(
    slug: str,
    service: InvestorService = Depends(investor_service),
):
    await service.delete_investor(slug)
    return OkResponse()


# ----------------------------------------------------------------------
# ALLOCATIONS
# ----------------------------------------------------------------------

@router.post(
    "/investors/{slug}/allocations",
    response_model=AllocationResponse,
    dependencies=[Depends(require_admin)],
)
async def add_allocation(
    slug: str,
    payload: Optional[AllocationCreateRequest] = Body(default=None),
    service: InvestorService = Depends(investor_service),
):
    payload = payload or AllocationCreateRequest()
    invested = payload.invested if payload.invested is not None else payload.amount
    allocation = await service.add_allocation(
        slug,
        symbol=payload.symbol,
        invested=invested,
        shares=payload.shares,
        date_invested=payload.date_invested,
    )
    return AllocationResponse(allocation=_allocation_schema(allocation))


@router.patch(
    "/investors/{slug}/allocations",
    response_model=AllocationResponse,
    dependencies=[Depends(require_admin)],
)
async def update_allocation(
    slug: str,
    payload: Optional[AllocationUpdateRequest] = Body(default=None),
    service: InvestorService = Depends(investor_service),
):
    payload = payload or AllocationUpdateRequest()
    invested = payload.invested if payload.invested is not None else payload.amount
    allocation = await service.update_allocation(
        slug,
        allocation_id=payload.id,
        allocation_index=_as_index(payload.allocation_index),
        changes={
            "symbol": payload.symbol,
            "invested": invested,
            "shares": payload.shares,
            "date_invested": payload.date_invested,
        },
    )
    return AllocationResponse(allocation=_allocation_schema(allocation))


@router.delete(
    "/investors/{slug}/allocations",
    response_model=OkResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def delete_allocation(
    slug: str,
    payload: Optional[AllocationDeleteRequest] = Body(default=None),
    service: InvestorService = Depends(investor_service),
):
    payload = payload or AllocationDeleteRequest()
    await service.delete_allocation(
        slug,
        allocation_id=payload.id,
        allocation_index=_as_index(payload.allocation_index),
    )
    return OkResponse()
