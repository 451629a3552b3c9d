"""Employee router — CRUD and per-date day plan assignments.

Routes:
    /employees                          — List / create
    /employees/{id}                     — Get / update / delete
    /employees/{id}/day-plans           — Assignments in a date range
    /employees/{id}/day-plans/{date}    — Upsert / delete one assignment
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import check_employee_scope, get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db
from timetrack.employees.schemas import (
    DayPlanAssignmentResponse,
    DayPlanAssignmentUpsert,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
)
from timetrack.employees.service import DayPlanAssignmentService, EmployeeService

router = APIRouter(prefix="", tags=["employees"])


# ═════════════════════════════════════════════════════════════════════
# Employees
# ═════════════════════════════════════════════════════════════════════


@router.get("")
async def list_employees(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("employees:manage")),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by name, personnel number or email"),
    tariff_id: Optional[uuid.UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    result = await EmployeeService.list_employees(
        db, ctx, pagination, search=search, tariff_id=tariff_id, is_active=is_active,
    )
    return result.model_dump(mode="json")


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    check_employee_scope(
        ctx, employee_id, own_permission="bookings:read_own", all_permission="employees:manage",
    )
    return await EmployeeService.get_employee(db, ctx, employee_id)


@router.post("", status_code=201, response_model=EmployeeResponse)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("employees:manage")),
):
    return await EmployeeService.create_employee(db, ctx, body)


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("employees:manage")),
):
    return await EmployeeService.update_employee(db, ctx, employee_id, body)


@router.delete("/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("employees:manage")),
):
    await EmployeeService.delete_employee(db, ctx, employee_id)


# ═════════════════════════════════════════════════════════════════════
# Day plan assignments
# ═════════════════════════════════════════════════════════════════════


@router.get("/{employee_id}/day-plans")
async def list_day_plan_assignments(
    employee_id: uuid.UUID,
    date_from: date = Query(..., alias="from"),
    date_to: date = Query(..., alias="to"),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    check_employee_scope(
        ctx, employee_id, own_permission="bookings:read_own", all_permission="time_plans:manage",
    )
    assignments = await DayPlanAssignmentService.list_assignments(
        db, ctx, employee_id, date_from, date_to,
    )
    return {
        "data": [
            DayPlanAssignmentResponse.model_validate(a).model_dump(mode="json") for a in assignments
        ],
    }


@router.put("/{employee_id}/day-plans/{plan_date}", response_model=DayPlanAssignmentResponse)
async def upsert_day_plan_assignment(
    employee_id: uuid.UUID,
    plan_date: date,
    body: DayPlanAssignmentUpsert,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    return await DayPlanAssignmentService.upsert_assignment(db, ctx, employee_id, plan_date, body)


@router.delete("/{employee_id}/day-plans/{plan_date}", status_code=204)
async def delete_day_plan_assignment(
    employee_id: uuid.UUID,
    plan_date: date,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    await DayPlanAssignmentService.delete_assignment(db, ctx, employee_id, plan_date)
