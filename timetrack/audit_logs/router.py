"""Audit log router — GET /audit-logs."""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.audit_logs.schemas import AuditLogResponse
from timetrack.audit_logs.service import AuditLogService
from timetrack.auth.dependencies import require_context
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import ValidationException
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db

router = APIRouter(prefix="", tags=["audit"])


@router.get("")
async def list_audit_logs(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("audit:read")),
    pagination: PaginationParams = Depends(),
    user_id: Optional[uuid.UUID] = Query(None),
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[uuid.UUID] = Query(None),
    action: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
):
    if from_date and to_date and to_date < from_date:
        raise ValidationException({"to": ["must not be before from"]})
    result = await AuditLogService.list_audit_logs(
        db,
        ctx,
        pagination,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        from_date=from_date,
        to_date=to_date,
    )
    return result.model_dump(mode="json")


@router.get("/{log_id}", response_model=AuditLogResponse)
async def get_audit_log(
    log_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("audit:read")),
):
    return await AuditLogService.get_audit_log(db, ctx, log_id)
