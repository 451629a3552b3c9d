"""Access control router — zones, profiles and employee assignments."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.access.schemas import (
    AccessAssignmentCreate,
    AccessAssignmentResponse,
    AccessAssignmentUpdate,
    AccessProfileCreate,
    AccessProfileResponse,
    AccessProfileUpdate,
    AccessZoneCreate,
    AccessZoneResponse,
    AccessZoneUpdate,
)
from timetrack.access.service import AccessAssignmentService, AccessProfileService, AccessZoneService
from timetrack.auth.dependencies import require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db

_manage = require_context("access:manage")

zones_router = APIRouter(prefix="", tags=["access"])
profiles_router = APIRouter(prefix="", tags=["access"])
assignments_router = APIRouter(prefix="", tags=["access"])


# ═════════════════════════════════════════════════════════════════════
# Zones
# ═════════════════════════════════════════════════════════════════════


@zones_router.get("")
async def list_zones(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by code or name"),
    is_active: Optional[bool] = Query(None),
):
    result = await AccessZoneService.list_zones(db, ctx, pagination, search=search, is_active=is_active)
    return result.model_dump(mode="json")


@zones_router.get("/{zone_id}", response_model=AccessZoneResponse)
async def get_zone(
    zone_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessZoneService.get_zone(db, ctx, zone_id)


@zones_router.post("", status_code=201, response_model=AccessZoneResponse)
async def create_zone(
    body: AccessZoneCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessZoneService.create_zone(db, ctx, body)


@zones_router.patch("/{zone_id}", response_model=AccessZoneResponse)
async def update_zone(
    zone_id: uuid.UUID,
    body: AccessZoneUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessZoneService.update_zone(db, ctx, zone_id, body)


@zones_router.delete("/{zone_id}", status_code=204)
async def delete_zone(
    zone_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    await AccessZoneService.delete_zone(db, ctx, zone_id)


# ═════════════════════════════════════════════════════════════════════
# Profiles
# ═════════════════════════════════════════════════════════════════════


@profiles_router.get("")
async def list_profiles(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by code or name"),
    is_active: Optional[bool] = Query(None),
):
    result = await AccessProfileService.list_profiles(
        db, ctx, pagination, search=search, is_active=is_active,
    )
    return result.model_dump(mode="json")


@profiles_router.get("/{profile_id}", response_model=AccessProfileResponse)
async def get_profile(
    profile_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessProfileService.get_profile(db, ctx, profile_id)


@profiles_router.post("", status_code=201, response_model=AccessProfileResponse)
async def create_profile(
    body: AccessProfileCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessProfileService.create_profile(db, ctx, body)


@profiles_router.patch("/{profile_id}", response_model=AccessProfileResponse)
async def update_profile(
    profile_id: uuid.UUID,
    body: AccessProfileUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessProfileService.update_profile(db, ctx, profile_id, body)


@profiles_router.delete("/{profile_id}", status_code=204)
async def delete_profile(
    profile_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    await AccessProfileService.delete_profile(db, ctx, profile_id)


# ═════════════════════════════════════════════════════════════════════
# Employee assignments
# ═════════════════════════════════════════════════════════════════════


@assignments_router.get("")
async def list_assignments(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    profile_id: Optional[uuid.UUID] = Query(None),
):
    result = await AccessAssignmentService.list_assignments(
        db, ctx, pagination, employee_id=employee_id, profile_id=profile_id,
    )
    return result.model_dump(mode="json")


@assignments_router.get("/{assignment_id}", response_model=AccessAssignmentResponse)
async def get_assignment(
    assignment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessAssignmentService.get_assignment(db, ctx, assignment_id)


@assignments_router.post("", status_code=201, response_model=AccessAssignmentResponse)
async def create_assignment(
    body: AccessAssignmentCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessAssignmentService.create_assignment(db, ctx, body)


@assignments_router.patch("/{assignment_id}", response_model=AccessAssignmentResponse)
async def update_assignment(
    assignment_id: uuid.UUID,
    body: AccessAssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await AccessAssignmentService.update_assignment(db, ctx, assignment_id, body)


@assignments_router.delete("/{assignment_id}", status_code=204)
async def delete_assignment(
    assignment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    await AccessAssignmentService.delete_assignment(db, ctx, assignment_id)
