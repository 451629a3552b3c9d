"""Tariff service — week plans and monthly evaluation rules."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException, ValidationException
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.validators import ensure_immutable, ensure_not_referenced, ensure_unique
from timetrack.day_plans.models import DayPlan
from timetrack.employees.models import Employee
from timetrack.macros.models import MacroAssignment
from timetrack.tariffs.models import WEEKDAY_COLUMNS, Tariff
from timetrack.tariffs.schemas import TariffCreate, TariffResponse, TariffUpdate

_AUDIT_FIELDS = [
    "code", "name", "credit_type", "flextime_threshold", "max_flextime_per_month",
    "upper_limit_annual", "lower_limit_annual", "annual_floor_balance", "is_active",
    *WEEKDAY_COLUMNS,
]


async def _check_day_plans(db: AsyncSession, tenant_id: uuid.UUID, values: dict[str, Any]) -> None:
    ids = {values[col] for col in WEEKDAY_COLUMNS if values.get(col) is not None}
    if not ids:
        return
    result = await db.execute(
        select(DayPlan.id).where(DayPlan.tenant_id == tenant_id, DayPlan.id.in_(ids)),
    )
    known = set(result.scalars().all())
    errors = {
        col: ["unknown day plan"]
        for col in WEEKDAY_COLUMNS
        if values.get(col) is not None and values[col] not in known
    }
    if errors:
        raise ValidationException(errors)


class TariffService:

    @staticmethod
    async def list_tariffs(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(Tariff).where(Tariff.tenant_id == ctx.tenant_id).order_by(Tariff.code)
        query = apply_filters(query, Tariff, {"is_active": is_active})
        query = apply_search(query, Tariff, search, ["code", "name"])
        return await paginate(db, query, pagination, model=Tariff, schema=TariffResponse)

    @staticmethod
    async def get_tariff(db: AsyncSession, ctx: RequestContext, tariff_id: uuid.UUID) -> Tariff:
        tariff = await db.get(Tariff, tariff_id)
        if tariff is None or tariff.tenant_id != ctx.tenant_id:
            raise NotFoundException("Tariff", tariff_id)
        return tariff

    @staticmethod
    async def create_tariff(db: AsyncSession, ctx: RequestContext, data: TariffCreate) -> Tariff:
        await ensure_unique(db, Tariff, "code", data.code, tenant_id=ctx.tenant_id)
        values = data.model_dump()
        values["credit_type"] = data.credit_type.value
        await _check_day_plans(db, ctx.tenant_id, values)

        tariff = Tariff(tenant_id=ctx.tenant_id, **values)
        db.add(tariff)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="tariff",
            entity_id=tariff.id,
            entity_name=tariff.name,
            new_values=snapshot(tariff, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return tariff

    @staticmethod
    async def update_tariff(
        db: AsyncSession,
        ctx: RequestContext,
        tariff_id: uuid.UUID,
        data: TariffUpdate,
    ) -> Tariff:
        tariff = await TariffService.get_tariff(db, ctx, tariff_id)
        updates = data.model_dump(exclude_unset=True)
        ensure_immutable(tariff, updates, ["code"])
        if updates.get("credit_type") is not None:
            updates["credit_type"] = updates["credit_type"].value
        elif "credit_type" in updates:
            updates.pop("credit_type")
        await _check_day_plans(db, ctx.tenant_id, updates)

        old_values = snapshot(tariff, _AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(tariff, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="tariff",
            entity_id=tariff.id,
            entity_name=tariff.name,
            old_values=old_values,
            new_values=snapshot(tariff, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return tariff

    @staticmethod
    async def delete_tariff(db: AsyncSession, ctx: RequestContext, tariff_id: uuid.UUID) -> None:
        tariff = await TariffService.get_tariff(db, ctx, tariff_id)
        await ensure_not_referenced(
            db,
            "Tariff",
            [
                (Employee.tariff_id, tariff.id, "employees"),
                (MacroAssignment.tariff_id, tariff.id, "macro assignments"),
            ],
        )
        old_values = snapshot(tariff, _AUDIT_FIELDS)
        await db.delete(tariff)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="tariff",
            entity_id=tariff_id,
            entity_name=tariff.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )
