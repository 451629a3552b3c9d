"""Macro router — macros, assignments, manual and scheduled execution.

Routes:
    /macros                                 — List / create
    /macros/execute-due                     — Run every assignment due on a date
    /macros/{id}                            — Get / update / delete
    /macros/{id}/assignments[/{aid}]        — Assignment CRUD
    /macros/{id}/execute                    — Manual run
    /macros/{id}/executions                 — Execution history
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db
from timetrack.macros.schemas import (
    ExecuteDueRequest,
    ExecuteRequest,
    MacroAssignmentCreate,
    MacroAssignmentResponse,
    MacroAssignmentUpdate,
    MacroCreate,
    MacroExecutionResponse,
    MacroResponse,
    MacroUpdate,
)
from timetrack.macros.service import MacroService

router = APIRouter(prefix="", tags=["macros"])

_manage = require_context("macros:manage")


# ═════════════════════════════════════════════════════════════════════
# Macros
# ═════════════════════════════════════════════════════════════════════


@router.get("")
async def list_macros(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None),
    macro_type: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    result = await MacroService.list_macros(
        db, ctx, pagination, search=search, macro_type=macro_type, is_active=is_active,
    )
    return result.model_dump(mode="json")


@router.post("", status_code=201, response_model=MacroResponse)
async def create_macro(
    body: MacroCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await MacroService.create_macro(db, ctx, body)


@router.post("/execute-due")
async def execute_due(
    body: ExecuteDueRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    executions = await MacroService.execute_due(db, ctx, body.execution_date)
    return {
        "data": [MacroExecutionResponse.model_validate(e).model_dump(mode="json") for e in executions],
        "executed": len(executions),
    }


@router.get("/{macro_id}", response_model=MacroResponse)
async def get_macro(
    macro_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await MacroService.get_macro(db, ctx, macro_id)


@router.patch("/{macro_id}", response_model=MacroResponse)
async def update_macro(
    macro_id: uuid.UUID,
    body: MacroUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await MacroService.update_macro(db, ctx, macro_id, body)


@router.delete("/{macro_id}", status_code=204)
async def delete_macro(
    macro_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    await MacroService.delete_macro(db, ctx, macro_id)


# ── Assignments ─────────────────────────────────────────────────────

@router.post("/{macro_id}/assignments", status_code=201, response_model=MacroAssignmentResponse)
async def add_assignment(
    macro_id: uuid.UUID,
    body: MacroAssignmentCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await MacroService.add_assignment(db, ctx, macro_id, body)


@router.patch("/{macro_id}/assignments/{assignment_id}", response_model=MacroAssignmentResponse)
async def update_assignment(
    macro_id: uuid.UUID,
    assignment_id: uuid.UUID,
    body: MacroAssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    return await MacroService.update_assignment(db, ctx, macro_id, assignment_id, body)


@router.delete("/{macro_id}/assignments/{assignment_id}", status_code=204)
async def delete_assignment(
    macro_id: uuid.UUID,
    assignment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    await MacroService.delete_assignment(db, ctx, macro_id, assignment_id)


# ── Execution ───────────────────────────────────────────────────────

@router.post("/{macro_id}/execute", response_model=MacroExecutionResponse)
async def execute_macro(
    macro_id: uuid.UUID,
    body: Optional[ExecuteRequest] = None,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
):
    body = body or ExecuteRequest()
    return await MacroService.execute(
        db, ctx, macro_id, on=body.execution_date, assignment_id=body.assignment_id,
    )


@router.get("/{macro_id}/executions")
async def list_executions(
    macro_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(_manage),
    pagination: PaginationParams = Depends(),
    status: Optional[str] = Query(None),
):
    result = await MacroService.list_executions(db, ctx, macro_id, pagination, status=status)
    return result.model_dump(mode="json")
