"""Absence service — absence types, absence requests and their workflow.

Approval, rejection, cancellation and deletion recalculate every affected
day through ``RecalcService``; closed months refuse the change.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.absences.models import AbsenceDay, AbsenceType
from timetrack.absences.schemas import (
    AbsenceRangeCreate,
    AbsenceResponse,
    AbsenceTypeCreate,
    AbsenceTypeResponse,
    AbsenceTypeUpdate,
    AbsenceUpdate,
)
from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.constants import AbsenceStatus
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException, ValidationException
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.timeutil import iter_days
from timetrack.common.validators import ensure_immutable, ensure_not_referenced, ensure_unique
from timetrack.daily_values.service import resolve_day_plan
from timetrack.employees.models import Employee
from timetrack.holidays.models import Holiday
from timetrack.monthly_values.service import RecalcService

logger = logging.getLogger(__name__)

_TYPE_AUDIT_FIELDS = ["code", "name", "category", "portion", "priority", "color", "is_active"]
_DAY_AUDIT_FIELDS = ["absence_date", "absence_type_id", "duration", "status", "notes"]


# ═════════════════════════════════════════════════════════════════════
# AbsenceTypeService
# ═════════════════════════════════════════════════════════════════════


class AbsenceTypeService:

    @staticmethod
    async def list_types(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        category: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(AbsenceType).where(AbsenceType.tenant_id == ctx.tenant_id).order_by(AbsenceType.code)
        query = apply_filters(query, AbsenceType, {"category": category, "is_active": is_active})
        query = apply_search(query, AbsenceType, search, ["code", "name"])
        return await paginate(db, query, pagination, model=AbsenceType, schema=AbsenceTypeResponse)

    @staticmethod
    async def get_type(db: AsyncSession, ctx: RequestContext, type_id: uuid.UUID) -> AbsenceType:
        absence_type = await db.get(AbsenceType, type_id)
        if absence_type is None or absence_type.tenant_id != ctx.tenant_id:
            raise NotFoundException("AbsenceType", type_id)
        return absence_type

    @staticmethod
    async def create_type(db: AsyncSession, ctx: RequestContext, data: AbsenceTypeCreate) -> AbsenceType:
        await ensure_unique(db, AbsenceType, "code", data.code, tenant_id=ctx.tenant_id)
        absence_type = AbsenceType(tenant_id=ctx.tenant_id, **data.model_dump())
        db.add(absence_type)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="absence_type",
            entity_id=absence_type.id,
            entity_name=absence_type.name,
            new_values=snapshot(absence_type, _TYPE_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return absence_type

    @staticmethod
    async def update_type(
        db: AsyncSession,
        ctx: RequestContext,
        type_id: uuid.UUID,
        data: AbsenceTypeUpdate,
    ) -> AbsenceType:
        absence_type = await AbsenceTypeService.get_type(db, ctx, type_id)
        updates = data.model_dump(exclude_unset=True)
        ensure_immutable(absence_type, updates, ["code"])
        updates = {
            k: v for k, v in updates.items()
            if v is not None or k in ("description", "color")
        }

        old_values = snapshot(absence_type, _TYPE_AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(absence_type, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="absence_type",
            entity_id=absence_type.id,
            entity_name=absence_type.name,
            old_values=old_values,
            new_values=snapshot(absence_type, _TYPE_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return absence_type

    @staticmethod
    async def delete_type(db: AsyncSession, ctx: RequestContext, type_id: uuid.UUID) -> None:
        absence_type = await AbsenceTypeService.get_type(db, ctx, type_id)
        await ensure_not_referenced(
            db,
            "AbsenceType",
            [(AbsenceDay.absence_type_id, absence_type.id, "absences")],
        )
        old_values = snapshot(absence_type, _TYPE_AUDIT_FIELDS)
        await db.delete(absence_type)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="absence_type",
            entity_id=type_id,
            entity_name=absence_type.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )


# ═════════════════════════════════════════════════════════════════════
# AbsenceService
# ═════════════════════════════════════════════════════════════════════


class AbsenceService:

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def list_absences(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        absence_type_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> PaginatedResponse:
        query = (
            select(AbsenceDay)
            .where(AbsenceDay.tenant_id == ctx.tenant_id)
            .order_by(AbsenceDay.absence_date, AbsenceDay.employee_id)
        )
        query = apply_filters(
            query,
            AbsenceDay,
            {
                "employee_id": employee_id,
                "absence_type_id": absence_type_id,
                "status": status,
                "absence_date__from": date_from,
                "absence_date__to": date_to,
            },
        )
        return await paginate(db, query, pagination, model=AbsenceDay, schema=AbsenceResponse)

    @staticmethod
    async def get_absence(db: AsyncSession, ctx: RequestContext, absence_id: uuid.UUID) -> AbsenceDay:
        absence = await db.get(AbsenceDay, absence_id)
        if absence is None or absence.tenant_id != ctx.tenant_id:
            raise NotFoundException("AbsenceDay", absence_id)
        return absence

    # ── Create (range) ──────────────────────────────────────────────

    @staticmethod
    async def create_range(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        data: AbsenceRangeCreate,
    ) -> list[AbsenceDay]:
        """One pending absence per working day; holidays and booked days are skipped."""
        employee = await db.get(Employee, employee_id)
        if employee is None or employee.tenant_id != ctx.tenant_id:
            raise NotFoundException("Employee", employee_id)
        absence_type = await AbsenceTypeService.get_type(db, ctx, data.absence_type_id)
        if not absence_type.is_active:
            raise ValidationException({"absence_type_id": ["absence type is inactive"]})

        holidays = set(
            (
                await db.execute(
                    select(Holiday.holiday_date).where(
                        Holiday.tenant_id == ctx.tenant_id,
                        Holiday.holiday_date >= data.date_from,
                        Holiday.holiday_date <= data.date_to,
                    ),
                )
            ).scalars().all(),
        )
        existing = set(
            (
                await db.execute(
                    select(AbsenceDay.absence_date).where(
                        AbsenceDay.employee_id == employee_id,
                        AbsenceDay.absence_date >= data.date_from,
                        AbsenceDay.absence_date <= data.date_to,
                    ),
                )
            ).scalars().all(),
        )

        days: list[date] = []
        for day in iter_days(data.date_from, data.date_to):
            if day in holidays or day in existing:
                continue
            if await resolve_day_plan(db, employee, day) is None:
                continue
            days.append(day)
        if not days:
            raise ValidationException(
                {"date_from": ["no working days without an existing absence in the range"]},
            )
        for year, month in sorted({(d.year, d.month) for d in days}):
            await RecalcService.ensure_month_open(db, employee_id, date(year, month, 1))

        created = [
            AbsenceDay(
                tenant_id=ctx.tenant_id,
                employee_id=employee_id,
                absence_date=day,
                absence_type_id=absence_type.id,
                duration=data.duration,
                notes=data.notes,
                status=AbsenceStatus.pending.value,
                created_by=ctx.user_id,
            )
            for day in days
        ]
        db.add_all(created)
        await db.flush()

        for absence in created:
            await db.refresh(absence, ["absence_type"])
            await create_audit_entry(
                db,
                action="create",
                entity_type="absence",
                entity_id=absence.id,
                entity_name=f"{absence_type.code} {absence.absence_date.isoformat()}",
                new_values=snapshot(absence, _DAY_AUDIT_FIELDS),
                **ctx.audit_kwargs(),
            )
        return created

    # ── Update / delete ─────────────────────────────────────────────

    @staticmethod
    async def update_absence(
        db: AsyncSession,
        ctx: RequestContext,
        absence_id: uuid.UUID,
        data: AbsenceUpdate,
    ) -> AbsenceDay:
        absence = await AbsenceService.get_absence(db, ctx, absence_id)
        _require_status(absence, AbsenceStatus.pending)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("absence_type_id") is not None:
            await AbsenceTypeService.get_type(db, ctx, updates["absence_type_id"])
        updates = {k: v for k, v in updates.items() if v is not None or k == "notes"}

        old_values = snapshot(absence, _DAY_AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(absence, field, value)
        await db.flush()
        await db.refresh(absence, ["absence_type"])

        await create_audit_entry(
            db,
            action="update",
            entity_type="absence",
            entity_id=absence.id,
            old_values=old_values,
            new_values=snapshot(absence, _DAY_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return absence

    @staticmethod
    async def delete_absence(db: AsyncSession, ctx: RequestContext, absence_id: uuid.UUID) -> None:
        absence = await AbsenceService.get_absence(db, ctx, absence_id)
        employee_id, day = absence.employee_id, absence.absence_date
        await RecalcService.ensure_month_open(db, employee_id, day)
        old_values = snapshot(absence, _DAY_AUDIT_FIELDS)
        await db.delete(absence)
        await db.flush()

        await RecalcService.recalculate_days(db, ctx.tenant_id, employee_id, [day])
        await create_audit_entry(
            db,
            action="delete",
            entity_type="absence",
            entity_id=absence_id,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )

    # ── Workflow ────────────────────────────────────────────────────

    @staticmethod
    async def approve(db: AsyncSession, ctx: RequestContext, absence_id: uuid.UUID) -> AbsenceDay:
        absence = await AbsenceService.get_absence(db, ctx, absence_id)
        _require_status(absence, AbsenceStatus.pending)
        absence.approved_by = ctx.user_id
        absence.approved_at = datetime.now(timezone.utc)
        return await _transition(db, ctx, absence, AbsenceStatus.approved, "approve")

    @staticmethod
    async def reject(
        db: AsyncSession,
        ctx: RequestContext,
        absence_id: uuid.UUID,
        reason: str,
    ) -> AbsenceDay:
        absence = await AbsenceService.get_absence(db, ctx, absence_id)
        _require_status(absence, AbsenceStatus.pending)
        reason = reason.strip()
        if not reason:
            raise ValidationException({"reason": ["is required"]})
        absence.rejection_reason = reason
        return await _transition(db, ctx, absence, AbsenceStatus.rejected, "reject")

    @staticmethod
    async def cancel(db: AsyncSession, ctx: RequestContext, absence_id: uuid.UUID) -> AbsenceDay:
        absence = await AbsenceService.get_absence(db, ctx, absence_id)
        _require_status(absence, AbsenceStatus.pending, AbsenceStatus.approved)
        return await _transition(db, ctx, absence, AbsenceStatus.cancelled, "cancel")


# ── Helpers ─────────────────────────────────────────────────────────

def _require_status(absence: AbsenceDay, *allowed: AbsenceStatus) -> None:
    if absence.status not in {s.value for s in allowed}:
        raise ValidationException(
            {"status": [f"Absence is already {absence.status}."]},
        )


async def _transition(
    db: AsyncSession,
    ctx: RequestContext,
    absence: AbsenceDay,
    status: AbsenceStatus,
    action: str,
) -> AbsenceDay:
    await RecalcService.ensure_month_open(db, absence.employee_id, absence.absence_date)
    old_status = absence.status
    absence.status = status.value
    await db.flush()

    await RecalcService.recalculate_days(
        db, ctx.tenant_id, absence.employee_id, [absence.absence_date],
    )
    await create_audit_entry(
        db,
        action=action,
        entity_type="absence",
        entity_id=absence.id,
        old_values={"status": old_status},
        new_values={
            "status": absence.status,
            "rejection_reason": absence.rejection_reason,
        },
        **ctx.audit_kwargs(),
    )
    logger.info(
        "Absence %s for employee %s on %s: %s -> %s",
        absence.id, absence.employee_id, absence.absence_date, old_status, absence.status,
    )
    return absence
