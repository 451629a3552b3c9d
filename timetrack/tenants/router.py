"""Tenant router — list, get, create, update, delete mandants."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db
from timetrack.tenants.schemas import TenantCreate, TenantResponse, TenantUpdate
from timetrack.tenants.service import TenantService

router = APIRouter(prefix="", tags=["tenants"])


@router.get("")
async def list_tenants(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by name or slug"),
    is_active: Optional[bool] = Query(None),
):
    result = await TenantService.list_tenants(
        db, ctx, pagination, search=search, is_active=is_active,
    )
    return result.model_dump(mode="json")


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return await TenantService.get_tenant(db, ctx, tenant_id)


@router.post("", status_code=201, response_model=TenantResponse)
async def create_tenant(
    body: TenantCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("tenants:manage")),
):
    return await TenantService.create_tenant(db, ctx, body)


@router.patch("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: uuid.UUID,
    body: TenantUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("users:manage")),
):
    return await TenantService.update_tenant(db, ctx, tenant_id, body)


@router.delete("/{tenant_id}", status_code=204)
async def delete_tenant(
    tenant_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("tenants:manage")),
):
    await TenantService.delete_tenant(db, ctx, tenant_id)
