"""Holiday service — public holidays per tenant."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException, ValidationException
from timetrack.common.filters import apply_filters
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.timeutil import validate_year_month
from timetrack.common.validators import ensure_unique
from timetrack.holidays.models import Holiday
from timetrack.holidays.schemas import HolidayCreate, HolidayResponse, HolidayUpdate

_AUDIT_FIELDS = ["holiday_date", "name", "category", "applies_to_all"]


class HolidayService:

    @staticmethod
    async def list_holidays(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        year: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[int] = None,
    ) -> PaginatedResponse:
        if year is not None:
            validate_year_month(year, 1)
            date_from = max(date_from or date(year, 1, 1), date(year, 1, 1))
            date_to = min(date_to or date(year, 12, 31), date(year, 12, 31))
        if date_from and date_to and date_to < date_from:
            raise ValidationException({"to": ["must not be before 'from'"]})

        query = (
            select(Holiday)
            .where(Holiday.tenant_id == ctx.tenant_id)
            .order_by(Holiday.holiday_date)
        )
        query = apply_filters(
            query,
            Holiday,
            {
                "holiday_date__from": date_from,
                "holiday_date__to": date_to,
                "category": category,
            },
        )
        return await paginate(db, query, pagination, model=Holiday, schema=HolidayResponse)

    @staticmethod
    async def get_holiday(db: AsyncSession, ctx: RequestContext, holiday_id: uuid.UUID) -> Holiday:
        holiday = await db.get(Holiday, holiday_id)
        if holiday is None or holiday.tenant_id != ctx.tenant_id:
            raise NotFoundException("Holiday", holiday_id)
        return holiday

    @staticmethod
    async def create_holiday(db: AsyncSession, ctx: RequestContext, data: HolidayCreate) -> Holiday:
        await ensure_unique(db, Holiday, "holiday_date", data.holiday_date, tenant_id=ctx.tenant_id)
        holiday = Holiday(tenant_id=ctx.tenant_id, **data.model_dump())
        db.add(holiday)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="holiday",
            entity_id=holiday.id,
            entity_name=holiday.name,
            new_values=snapshot(holiday, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return holiday

    @staticmethod
    async def update_holiday(
        db: AsyncSession,
        ctx: RequestContext,
        holiday_id: uuid.UUID,
        data: HolidayUpdate,
    ) -> Holiday:
        holiday = await HolidayService.get_holiday(db, ctx, holiday_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if "holiday_date" in updates:
            await ensure_unique(
                db, Holiday, "holiday_date", updates["holiday_date"],
                tenant_id=ctx.tenant_id, exclude_id=holiday.id,
            )

        old_values = snapshot(holiday, _AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(holiday, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="holiday",
            entity_id=holiday.id,
            entity_name=holiday.name,
            old_values=old_values,
            new_values=snapshot(holiday, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return holiday

    @staticmethod
    async def delete_holiday(db: AsyncSession, ctx: RequestContext, holiday_id: uuid.UUID) -> None:
        holiday = await HolidayService.get_holiday(db, ctx, holiday_id)
        old_values = snapshot(holiday, _AUDIT_FIELDS)
        await db.delete(holiday)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="holiday",
            entity_id=holiday_id,
            entity_name=holiday.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )
