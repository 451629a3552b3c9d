"""Absence router — absence types, requests and approval workflow.

Routes:
    /absence-types                  — Absence type CRUD
    /employees/{id}/absences        — Request a range / list an employee's absences
    /absences                       — Tenant-wide list
    /absences/{id}                  — Get / update (pending) / delete
    /absences/{id}/approve|reject|cancel
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.absences.schemas import (
    AbsenceRangeCreate,
    AbsenceResponse,
    AbsenceTypeCreate,
    AbsenceTypeResponse,
    AbsenceTypeUpdate,
    AbsenceUpdate,
    RejectRequest,
)
from timetrack.absences.service import AbsenceService, AbsenceTypeService
from timetrack.auth.dependencies import check_employee_scope, get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db

absence_types_router = APIRouter(prefix="", tags=["absences"])
absences_router = APIRouter(prefix="", tags=["absences"])
employee_absences_router = APIRouter(prefix="", tags=["absences"])


def _check_scope(ctx: RequestContext, employee_id: uuid.UUID) -> None:
    check_employee_scope(
        ctx, employee_id, own_permission="absences:request", all_permission="absences:approve",
    )


# ═════════════════════════════════════════════════════════════════════
# Absence types
# ═════════════════════════════════════════════════════════════════════


@absence_types_router.get("")
async def list_absence_types(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by code or name"),
    category: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    result = await AbsenceTypeService.list_types(
        db, ctx, pagination, search=search, category=category, is_active=is_active,
    )
    return result.model_dump(mode="json")


@absence_types_router.get("/{type_id}", response_model=AbsenceTypeResponse)
async def get_absence_type(
    type_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return await AbsenceTypeService.get_type(db, ctx, type_id)


@absence_types_router.post("", status_code=201, response_model=AbsenceTypeResponse)
async def create_absence_type(
    body: AbsenceTypeCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    return await AbsenceTypeService.create_type(db, ctx, body)


@absence_types_router.patch("/{type_id}", response_model=AbsenceTypeResponse)
async def update_absence_type(
    type_id: uuid.UUID,
    body: AbsenceTypeUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    return await AbsenceTypeService.update_type(db, ctx, type_id, body)


@absence_types_router.delete("/{type_id}", status_code=204)
async def delete_absence_type(
    type_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("time_plans:manage")),
):
    await AbsenceTypeService.delete_type(db, ctx, type_id)


# ═════════════════════════════════════════════════════════════════════
# Per-employee
# ═════════════════════════════════════════════════════════════════════


@employee_absences_router.post("/{employee_id}/absences", status_code=201)
async def request_absences(
    employee_id: uuid.UUID,
    body: AbsenceRangeCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    _check_scope(ctx, employee_id)
    created = await AbsenceService.create_range(db, ctx, employee_id, body)
    return {
        "data": [AbsenceResponse.model_validate(a).model_dump(mode="json") for a in created],
        "created": len(created),
    }


@employee_absences_router.get("/{employee_id}/absences")
async def list_employee_absences(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    pagination: PaginationParams = Depends(),
    status: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
):
    _check_scope(ctx, employee_id)
    result = await AbsenceService.list_absences(
        db, ctx, pagination,
        employee_id=employee_id, status=status, date_from=date_from, date_to=date_to,
    )
    return result.model_dump(mode="json")


# ═════════════════════════════════════════════════════════════════════
# Tenant-wide
# ═════════════════════════════════════════════════════════════════════


@absences_router.get("")
async def list_absences(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("absences:approve")),
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    absence_type_id: Optional[uuid.UUID] = Query(None),
    status: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
):
    result = await AbsenceService.list_absences(
        db, ctx, pagination,
        employee_id=employee_id,
        absence_type_id=absence_type_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )
    return result.model_dump(mode="json")


@absences_router.get("/{absence_id}", response_model=AbsenceResponse)
async def get_absence(
    absence_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    absence = await AbsenceService.get_absence(db, ctx, absence_id)
    _check_scope(ctx, absence.employee_id)
    return absence


@absences_router.patch("/{absence_id}", response_model=AbsenceResponse)
async def update_absence(
    absence_id: uuid.UUID,
    body: AbsenceUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    absence = await AbsenceService.get_absence(db, ctx, absence_id)
    _check_scope(ctx, absence.employee_id)
    return await AbsenceService.update_absence(db, ctx, absence_id, body)


@absences_router.delete("/{absence_id}", status_code=204)
async def delete_absence(
    absence_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("absences:approve")),
):
    await AbsenceService.delete_absence(db, ctx, absence_id)


@absences_router.post("/{absence_id}/approve", response_model=AbsenceResponse)
async def approve_absence(
    absence_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("absences:approve")),
):
    return await AbsenceService.approve(db, ctx, absence_id)


@absences_router.post("/{absence_id}/reject", response_model=AbsenceResponse)
async def reject_absence(
    absence_id: uuid.UUID,
    body: RejectRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("absences:approve")),
):
    return await AbsenceService.reject(db, ctx, absence_id, body.reason)


@absences_router.post("/{absence_id}/cancel", response_model=AbsenceResponse)
async def cancel_absence(
    absence_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    absence = await AbsenceService.get_absence(db, ctx, absence_id)
    _check_scope(ctx, absence.employee_id)
    return await AbsenceService.cancel(db, ctx, absence_id)
