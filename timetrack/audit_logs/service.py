"""Audit log service — read-only access to the change log."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.audit_logs.schemas import AuditLogResponse
from timetrack.common.audit import AuditLog
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException
from timetrack.common.filters import apply_filters
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class AuditLogService:

    @staticmethod
    async def list_audit_logs(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
        action: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> PaginatedResponse:
        query = (
            select(AuditLog)
            .where(AuditLog.tenant_id == ctx.tenant_id)
            .order_by(AuditLog.created_at.desc())
        )
        query = apply_filters(
            query,
            AuditLog,
            {
                "user_id": user_id,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "created_at__from": _day_start(from_date) if from_date else None,
            },
        )
        # Inclusive upper bound on the whole day
        if to_date is not None:
            query = query.where(AuditLog.created_at < _day_start(to_date + timedelta(days=1)))
        return await paginate(db, query, pagination, model=AuditLog, schema=AuditLogResponse)

    @staticmethod
    async def get_audit_log(db: AsyncSession, ctx: RequestContext, log_id: uuid.UUID) -> AuditLog:
        entry = await db.get(AuditLog, log_id)
        if entry is None or entry.tenant_id != ctx.tenant_id:
            raise NotFoundException("AuditLog", log_id)
        return entry
