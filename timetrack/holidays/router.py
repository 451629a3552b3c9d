"""Holiday router — list by year or range, CRUD."""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db
from timetrack.holidays.schemas import HolidayCreate, HolidayResponse, HolidayUpdate
from timetrack.holidays.service import HolidayService

router = APIRouter(prefix="", tags=["holidays"])


@router.get("")
async def list_holidays(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    pagination: PaginationParams = Depends(),
    year: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    category: Optional[int] = Query(None, ge=1, le=3),
):
    result = await HolidayService.list_holidays(
        db, ctx, pagination, year=year, date_from=date_from, date_to=date_to, category=category,
    )
    return result.model_dump(mode="json")


@router.get("/{holiday_id}", response_model=HolidayResponse)
async def get_holiday(
    holiday_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return await HolidayService.get_holiday(db, ctx, holiday_id)


@router.post("", status_code=201, response_model=HolidayResponse)
async def create_holiday(
    body: HolidayCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("holidays:manage")),
):
    return await HolidayService.create_holiday(db, ctx, body)


@router.patch("/{holiday_id}", response_model=HolidayResponse)
async def update_holiday(
    holiday_id: uuid.UUID,
    body: HolidayUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("holidays:manage")),
):
    return await HolidayService.update_holiday(db, ctx, holiday_id, body)


@router.delete("/{holiday_id}", status_code=204)
async def delete_holiday(
    holiday_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("holidays:manage")),
):
    await HolidayService.delete_holiday(db, ctx, holiday_id)
