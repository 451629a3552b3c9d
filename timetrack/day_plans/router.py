"""Day plan router — CRUD and copy."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db
from timetrack.day_plans.schemas import DayPlanCopy, DayPlanCreate, DayPlanResponse, DayPlanUpdate
from timetrack.day_plans.service import DayPlanService

router = APIRouter(prefix="", tags=["day-plans"])


@router.get("")
async def list_day_plans(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by code or name"),
    plan_type: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    result = await DayPlanService.list_day_plans(
        db, ctx, pagination, search=search, plan_type=plan_type, is_active=is_active,
    )
    return result.model_dump(mode="json")


@router.get("/{day_plan_id}", response_model=DayPlanResponse)
async def get_day_plan(
    day_plan_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return await DayPlanService.get_day_plan(db, ctx, day_plan_id)


@router.post("", status_code=201, response_model=DayPlanResponse)
async def create_day_plan(
    body: DayPlanCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    return await DayPlanService.create_day_plan(db, ctx, body)


@router.patch("/{day_plan_id}", response_model=DayPlanResponse)
async def update_day_plan(
    day_plan_id: uuid.UUID,
    body: DayPlanUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    return await DayPlanService.update_day_plan(db, ctx, day_plan_id, body)


@router.post("/{day_plan_id}/copy", status_code=201, response_model=DayPlanResponse)
async def copy_day_plan(
    day_plan_id: uuid.UUID,
    body: DayPlanCopy,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    return await DayPlanService.copy_day_plan(db, ctx, day_plan_id, body)


@router.delete("/{day_plan_id}", status_code=204)
async def delete_day_plan(
    day_plan_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    await DayPlanService.delete_day_plan(db, ctx, day_plan_id)
