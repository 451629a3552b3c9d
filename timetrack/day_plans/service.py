"""Day plan service — CRUD with nested breaks, copy."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.validators import ensure_immutable, ensure_not_referenced, ensure_unique
from timetrack.day_plans.models import DayPlan, DayPlanBreak, EmployeeDayPlan
from timetrack.day_plans.schemas import DayPlanCopy, DayPlanCreate, DayPlanResponse, DayPlanUpdate
from timetrack.tariffs.models import WEEKDAY_COLUMNS, Tariff

_AUDIT_FIELDS = [
    "code", "name", "plan_type", "regular_hours", "regular_hours_2",
    "come_from", "come_to", "go_from", "go_to", "core_start", "core_end",
    "no_booking_behavior", "is_active",
]

# Columns a copy does not inherit
_COPY_SKIP = {"id", "tenant_id", "code", "name", "created_at", "updated_at"}


def _breaks(items: list[Any]) -> list[DayPlanBreak]:
    return [DayPlanBreak(**item.model_dump()) for item in items]


def _nullable(column_name: str) -> bool:
    return DayPlan.__table__.c[column_name].nullable


class DayPlanService:

    @staticmethod
    async def list_day_plans(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        plan_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(DayPlan).where(DayPlan.tenant_id == ctx.tenant_id).order_by(DayPlan.code)
        query = apply_filters(query, DayPlan, {"plan_type": plan_type, "is_active": is_active})
        query = apply_search(query, DayPlan, search, ["code", "name"])
        return await paginate(db, query, pagination, model=DayPlan, schema=DayPlanResponse)

    @staticmethod
    async def get_day_plan(db: AsyncSession, ctx: RequestContext, day_plan_id: uuid.UUID) -> DayPlan:
        plan = await db.get(DayPlan, day_plan_id)
        if plan is None or plan.tenant_id != ctx.tenant_id:
            raise NotFoundException("DayPlan", day_plan_id)
        return plan

    @staticmethod
    async def create_day_plan(db: AsyncSession, ctx: RequestContext, data: DayPlanCreate) -> DayPlan:
        await ensure_unique(db, DayPlan, "code", data.code, tenant_id=ctx.tenant_id)
        values = data.model_dump(exclude={"breaks"})
        plan = DayPlan(tenant_id=ctx.tenant_id, breaks=_breaks(data.breaks), **values)
        db.add(plan)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="day_plan",
            entity_id=plan.id,
            entity_name=plan.name,
            new_values=snapshot(plan, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return plan

    @staticmethod
    async def update_day_plan(
        db: AsyncSession,
        ctx: RequestContext,
        day_plan_id: uuid.UUID,
        data: DayPlanUpdate,
    ) -> DayPlan:
        plan = await DayPlanService.get_day_plan(db, ctx, day_plan_id)
        updates = data.model_dump(exclude_unset=True, exclude={"breaks"})
        ensure_immutable(plan, updates, ["code"])
        # null on a NOT NULL column means "leave as is"
        updates = {k: v for k, v in updates.items() if v is not None or _nullable(k)}

        old_values = snapshot(plan, _AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(plan, field, value)
        if data.breaks is not None:
            plan.breaks = _breaks(data.breaks)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="day_plan",
            entity_id=plan.id,
            entity_name=plan.name,
            old_values=old_values,
            new_values=snapshot(plan, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return plan

    @staticmethod
    async def copy_day_plan(
        db: AsyncSession,
        ctx: RequestContext,
        day_plan_id: uuid.UUID,
        data: DayPlanCopy,
    ) -> DayPlan:
        source = await DayPlanService.get_day_plan(db, ctx, day_plan_id)
        await ensure_unique(db, DayPlan, "code", data.code, tenant_id=ctx.tenant_id)

        values = {
            attr.key: getattr(source, attr.key)
            for attr in sa_inspect(DayPlan).column_attrs
            if attr.key not in _COPY_SKIP
        }
        copy = DayPlan(
            tenant_id=ctx.tenant_id,
            code=data.code,
            name=data.name,
            breaks=[
                DayPlanBreak(
                    break_type=b.break_type,
                    start_time=b.start_time,
                    end_time=b.end_time,
                    duration=b.duration,
                    after_work_minutes=b.after_work_minutes,
                    auto_deduct=b.auto_deduct,
                    is_paid=b.is_paid,
                    minutes_difference=b.minutes_difference,
                    sort_order=b.sort_order,
                )
                for b in source.breaks
            ],
            **values,
        )
        db.add(copy)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="day_plan",
            entity_id=copy.id,
            entity_name=copy.name,
            new_values={**snapshot(copy, _AUDIT_FIELDS), "copied_from": source.code},
            **ctx.audit_kwargs(),
        )
        return copy

    @staticmethod
    async def delete_day_plan(db: AsyncSession, ctx: RequestContext, day_plan_id: uuid.UUID) -> None:
        plan = await DayPlanService.get_day_plan(db, ctx, day_plan_id)
        await ensure_not_referenced(
            db,
            "DayPlan",
            [(getattr(Tariff, col), plan.id, "tariffs") for col in WEEKDAY_COLUMNS]
            + [(EmployeeDayPlan.day_plan_id, plan.id, "day plan assignments")],
        )
        old_values = snapshot(plan, _AUDIT_FIELDS)
        await db.delete(plan)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="day_plan",
            entity_id=day_plan_id,
            entity_name=plan.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )
