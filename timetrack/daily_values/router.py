"""Daily values router — list, per-employee range, recalculation."""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import check_employee_scope, get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import ValidationException
from timetrack.common.pagination import PaginationParams
from timetrack.daily_values.schemas import (
    DailyValueResponse,
    RecalculateRequest,
    RecalculateResponse,
)
from timetrack.daily_values.service import DailyValueService
from timetrack.database import get_db
from timetrack.monthly_values.service import RecalcService

daily_values_router = APIRouter(prefix="", tags=["daily-values"])
employee_daily_router = APIRouter(prefix="", tags=["daily-values"])


@daily_values_router.get("")
async def list_daily_values(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("daily_values:read_all")),
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    has_error: Optional[bool] = Query(None),
    status: Optional[str] = Query(None),
):
    result = await DailyValueService.list_daily_values(
        db,
        ctx,
        pagination,
        employee_id=employee_id,
        date_from=date_from,
        date_to=date_to,
        has_error=has_error,
        status=status,
    )
    return result.model_dump(mode="json")


@daily_values_router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate_range(
    body: RecalculateRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("daily_values:recalculate")),
):
    return await RecalcService.recalculate_range(
        db, ctx, body.date_from, body.date_to, body.employee_id,
    )


@daily_values_router.get("/{daily_value_id}", response_model=DailyValueResponse)
async def get_daily_value(
    daily_value_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    daily_value = await DailyValueService.get_daily_value(db, ctx, daily_value_id)
    check_employee_scope(
        ctx,
        daily_value.employee_id,
        own_permission="daily_values:read_own",
        all_permission="daily_values:read_all",
    )
    return daily_value


@employee_daily_router.get("/{employee_id}/daily-values")
async def employee_daily_values(
    employee_id: uuid.UUID,
    date_from: date = Query(..., alias="from"),
    date_to: date = Query(..., alias="to"),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    check_employee_scope(
        ctx,
        employee_id,
        own_permission="daily_values:read_own",
        all_permission="daily_values:read_all",
    )
    if date_to < date_from:
        raise ValidationException({"to": ["must not be before 'from'"]})
    values = await DailyValueService.list_for_employee(db, ctx, employee_id, date_from, date_to)
    return {
        "data": [DailyValueResponse.model_validate(v).model_dump(mode="json") for v in values],
    }
