"""Monthly values router — evaluation, close/reopen, batch runs, export.

Routes:
    /employees/{id}/months/{year}                          — Year overview
    /employees/{id}/months/{year}/{month}                  — Monthly value
    /employees/{id}/months/{year}/{month}/recalculate      — Recalculate month
    /employees/{id}/months/{year}/{month}/recalculate-cascade
    /employees/{id}/months/{year}/{month}/close|reopen
    /employees/{id}/months/{year}/{month}/export.csv|print
    /monthly-values                                        — List
    /monthly-values/batch-recalculate|batch-close
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import check_employee_scope, get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.common.timeutil import month_bounds, validate_year_month
from timetrack.daily_values.service import DailyValueService
from timetrack.database import get_db
from timetrack.employees.models import Employee
from timetrack.monthly_values.export import build_csv, build_print_html, export_filename
from timetrack.monthly_values.schemas import (
    BatchCloseRequest,
    BatchRequest,
    BatchResponse,
    MonthlyValueResponse,
    ReasonRequest,
)
from timetrack.monthly_values.service import MonthlyEvalService

employee_months_router = APIRouter(prefix="", tags=["monthly-values"])
monthly_values_router = APIRouter(prefix="", tags=["monthly-values"])


def _check_read(ctx: RequestContext, employee_id: uuid.UUID) -> None:
    check_employee_scope(
        ctx,
        employee_id,
        own_permission="monthly_values:read_own",
        all_permission="monthly_values:read_all",
    )


# ═════════════════════════════════════════════════════════════════════
# Per-employee endpoints
# ═════════════════════════════════════════════════════════════════════


@employee_months_router.get("/{employee_id}/months/{year}")
async def year_overview(
    employee_id: uuid.UUID,
    year: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    _check_read(ctx, employee_id)
    values = await MonthlyEvalService.year_overview(db, ctx, employee_id, year)
    return {
        "data": [MonthlyValueResponse.model_validate(v).model_dump(mode="json") for v in values],
    }


@employee_months_router.get("/{employee_id}/months/{year}/{month}", response_model=MonthlyValueResponse)
async def get_month(
    employee_id: uuid.UUID,
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    _check_read(ctx, employee_id)
    return await MonthlyEvalService.get_month(db, ctx, employee_id, year, month)


@employee_months_router.post(
    "/{employee_id}/months/{year}/{month}/recalculate",
    response_model=MonthlyValueResponse,
)
async def recalculate_month(
    employee_id: uuid.UUID,
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("daily_values:recalculate")),
):
    return await MonthlyEvalService.recalculate_month(db, ctx.tenant_id, employee_id, year, month)


@employee_months_router.post(
    "/{employee_id}/months/{year}/{month}/recalculate-cascade",
    response_model=BatchResponse,
)
async def recalculate_cascade(
    employee_id: uuid.UUID,
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("daily_values:recalculate")),
):
    result = await MonthlyEvalService.recalculate_from_month(
        db, ctx.tenant_id, employee_id, year, month,
    )
    return BatchResponse.model_validate(result)


@employee_months_router.post(
    "/{employee_id}/months/{year}/{month}/close",
    response_model=MonthlyValueResponse,
)
async def close_month(
    employee_id: uuid.UUID,
    year: int,
    month: int,
    body: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("monthly_values:close")),
):
    return await MonthlyEvalService.close_month(db, ctx, employee_id, year, month, body.reason)


@employee_months_router.post(
    "/{employee_id}/months/{year}/{month}/reopen",
    response_model=MonthlyValueResponse,
)
async def reopen_month(
    employee_id: uuid.UUID,
    year: int,
    month: int,
    body: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("monthly_values:close")),
):
    return await MonthlyEvalService.reopen_month(db, ctx, employee_id, year, month, body.reason)


# ── Export ──────────────────────────────────────────────────────────

async def _export_data(db: AsyncSession, ctx: RequestContext, employee_id: uuid.UUID, year: int, month: int):
    validate_year_month(year, month)
    _check_read(ctx, employee_id)
    monthly_value = await MonthlyEvalService.find_month(db, ctx, employee_id, year, month)
    first, last = month_bounds(year, month)
    daily_values = await DailyValueService.list_for_employee(db, ctx, employee_id, first, last)
    return daily_values, monthly_value


@employee_months_router.get("/{employee_id}/months/{year}/{month}/export.csv")
async def export_csv(
    employee_id: uuid.UUID,
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    daily_values, monthly_value = await _export_data(db, ctx, employee_id, year, month)
    return Response(
        content=build_csv(year, month, daily_values, monthly_value),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(year, month)}"',
        },
    )


@employee_months_router.get("/{employee_id}/months/{year}/{month}/print", response_class=HTMLResponse)
async def export_print(
    employee_id: uuid.UUID,
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    daily_values, monthly_value = await _export_data(db, ctx, employee_id, year, month)
    employee = await db.get(Employee, employee_id)
    return HTMLResponse(
        build_print_html(year, month, daily_values, monthly_value, employee.full_name),
    )


# ═════════════════════════════════════════════════════════════════════
# Tenant-wide endpoints
# ═════════════════════════════════════════════════════════════════════


@monthly_values_router.get("")
async def list_monthly_values(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("monthly_values:read_all")),
    pagination: PaginationParams = Depends(),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    employee_id: Optional[uuid.UUID] = Query(None),
    is_closed: Optional[bool] = Query(None),
):
    result = await MonthlyEvalService.list_monthly_values(
        db,
        ctx,
        pagination,
        year=year,
        month=month,
        employee_id=employee_id,
        is_closed=is_closed,
    )
    return result.model_dump(mode="json")


@monthly_values_router.post("/batch-recalculate", response_model=BatchResponse)
async def batch_recalculate(
    body: BatchRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("daily_values:recalculate")),
):
    result = await MonthlyEvalService.batch_recalculate(
        db, ctx, body.year, body.month, body.employee_ids,
    )
    return BatchResponse.model_validate(result)


@monthly_values_router.post("/batch-close", response_model=BatchResponse)
async def batch_close(
    body: BatchCloseRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("monthly_values:close")),
):
    result = await MonthlyEvalService.batch_close(
        db, ctx, body.year, body.month, body.reason, body.employee_ids, body.recalculate,
    )
    return BatchResponse.model_validate(result)
