"""Tariff router — week plans and monthly evaluation rules."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db
from timetrack.tariffs.schemas import TariffCreate, TariffResponse, TariffUpdate
from timetrack.tariffs.service import TariffService

router = APIRouter(prefix="", tags=["tariffs"])


@router.get("")
async def list_tariffs(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by code or name"),
    is_active: Optional[bool] = Query(None),
):
    result = await TariffService.list_tariffs(db, ctx, pagination, search=search, is_active=is_active)
    return result.model_dump(mode="json")


@router.get("/{tariff_id}", response_model=TariffResponse)
async def get_tariff(
    tariff_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return await TariffService.get_tariff(db, ctx, tariff_id)


@router.post("", status_code=201, response_model=TariffResponse)
async def create_tariff(
    body: TariffCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    return await TariffService.create_tariff(db, ctx, body)


@router.patch("/{tariff_id}", response_model=TariffResponse)
async def update_tariff(
    tariff_id: uuid.UUID,
    body: TariffUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    return await TariffService.update_tariff(db, ctx, tariff_id, body)


@router.delete("/{tariff_id}", status_code=204)
async def delete_tariff(
    tariff_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    await TariffService.delete_tariff(db, ctx, tariff_id)
