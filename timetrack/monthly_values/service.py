"""Monthly evaluation service — aggregation, close/reopen, batch and cascade runs.

Also hosts ``RecalcService``, the single entry point used by bookings,
absences, day-plan assignments and macros to recalculate days while
honouring closed months.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.absences.models import AbsenceDay
from timetrack.calculation.monthly import calculate_annual_carryover, calculate_month
from timetrack.calculation.types import (
    AbsenceSummary,
    DailyValueInput,
    MonthlyCalcInput,
    MonthlyEvaluationRules,
)
from timetrack.common.audit import create_audit_entry
from timetrack.common.constants import AbsenceCategory, AbsenceStatus, CreditType
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import (
    AppException,
    InvalidStateError,
    MonthClosedError,
    NotFoundException,
    ValidationException,
)
from timetrack.common.filters import apply_filters
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.timeutil import (
    iter_days,
    month_bounds,
    next_month,
    previous_month,
    today,
    validate_year_month,
)
from timetrack.common.validators import require_reason
from timetrack.daily_values.models import DailyValue
from timetrack.daily_values.service import DailyCalcService
from timetrack.employees.models import Employee
from timetrack.monthly_values.models import MonthlyValue
from timetrack.monthly_values.schemas import MonthlyValueResponse
from timetrack.tariffs.models import Tariff

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def fail(self, employee_id: uuid.UUID, reason: str, **extra: Any) -> None:
        self.failed += 1
        self.errors.append({"employee_id": employee_id, "reason": reason, **extra})


# ── Lookups ─────────────────────────────────────────────────────────

async def _get_employee(db: AsyncSession, tenant_id: uuid.UUID, employee_id: uuid.UUID) -> Employee:
    employee = await db.get(Employee, employee_id)
    if employee is None or employee.tenant_id != tenant_id:
        raise NotFoundException("Employee", employee_id)
    return employee


async def _find_month(
    db: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
    month: int,
) -> Optional[MonthlyValue]:
    result = await db.execute(
        select(MonthlyValue).where(
            MonthlyValue.employee_id == employee_id,
            MonthlyValue.year == year,
            MonthlyValue.month == month,
        ),
    )
    return result.scalars().first()


async def _active_employee_ids(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    employee_ids: Optional[list[uuid.UUID]] = None,
) -> list[uuid.UUID]:
    if employee_ids:
        return list(dict.fromkeys(employee_ids))
    result = await db.execute(
        select(Employee.id)
        .where(Employee.tenant_id == tenant_id, Employee.is_active.is_(True))
        .order_by(Employee.personnel_number),
    )
    return list(result.scalars().all())


def _is_future_month(year: int, month: int) -> bool:
    current = today()
    return (year, month) > (current.year, current.month)


def evaluation_rules(tariff: Optional[Tariff]) -> Optional[MonthlyEvaluationRules]:
    if tariff is None:
        return None
    return MonthlyEvaluationRules(
        credit_type=CreditType(tariff.credit_type),
        flextime_threshold=tariff.flextime_threshold,
        max_flextime_per_month=tariff.max_flextime_per_month,
        flextime_cap_positive=tariff.upper_limit_annual,
        flextime_cap_negative=tariff.lower_limit_annual,
        annual_floor_balance=tariff.annual_floor_balance,
    )


def summarize_absences(absences: Iterable[AbsenceDay]) -> AbsenceSummary:
    """Vacation sums durations, illness counts started days, the rest count days."""
    summary = AbsenceSummary()
    for absence in absences:
        if absence.status != AbsenceStatus.approved.value or absence.absence_type is None:
            continue
        category = absence.absence_type.category
        if category == AbsenceCategory.vacation.value:
            summary.vacation_days += absence.duration
        elif category == AbsenceCategory.illness.value:
            summary.sick_days += math.ceil(absence.duration)
        else:
            summary.other_absence_days += 1
    return summary


# ═════════════════════════════════════════════════════════════════════
# MonthlyEvalService
# ═════════════════════════════════════════════════════════════════════


class MonthlyEvalService:

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def list_monthly_values(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        employee_id: Optional[uuid.UUID] = None,
        is_closed: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = (
            select(MonthlyValue)
            .where(MonthlyValue.tenant_id == ctx.tenant_id)
            .order_by(MonthlyValue.year, MonthlyValue.month)
        )
        query = apply_filters(
            query,
            MonthlyValue,
            {"year": year, "month": month, "employee_id": employee_id, "is_closed": is_closed},
        )
        return await paginate(db, query, pagination, model=MonthlyValue, schema=MonthlyValueResponse)

    @staticmethod
    async def get_month(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        year: int,
        month: int,
    ) -> MonthlyValue:
        validate_year_month(year, month)
        await _get_employee(db, ctx.tenant_id, employee_id)
        monthly_value = await _find_month(db, employee_id, year, month)
        if monthly_value is None:
            raise NotFoundException("MonthlyValue", f"{employee_id}/{year:04d}-{month:02d}")
        return monthly_value

    @staticmethod
    async def find_month(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        year: int,
        month: int,
    ) -> Optional[MonthlyValue]:
        validate_year_month(year, month)
        await _get_employee(db, ctx.tenant_id, employee_id)
        return await _find_month(db, employee_id, year, month)

    @staticmethod
    async def year_overview(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        year: int,
    ) -> list[MonthlyValue]:
        validate_year_month(year, 1)
        await _get_employee(db, ctx.tenant_id, employee_id)
        result = await db.execute(
            select(MonthlyValue)
            .where(MonthlyValue.employee_id == employee_id, MonthlyValue.year == year)
            .order_by(MonthlyValue.month),
        )
        return list(result.scalars().all())

    # ── Recalculate ─────────────────────────────────────────────────

    @staticmethod
    async def recalculate_month(
        db: AsyncSession,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        year: int,
        month: int,
    ) -> MonthlyValue:
        validate_year_month(year, month)
        if _is_future_month(year, month):
            raise ValidationException({"month": ["cannot calculate a future month"]})
        employee = await _get_employee(db, tenant_id, employee_id)
        existing = await _find_month(db, employee_id, year, month)
        if existing is not None and existing.is_closed:
            raise MonthClosedError(year, month)
        return await MonthlyEvalService._compute(db, employee, year, month, existing)

    @staticmethod
    async def _compute(
        db: AsyncSession,
        employee: Employee,
        year: int,
        month: int,
        existing: Optional[MonthlyValue],
    ) -> MonthlyValue:
        first, last = month_bounds(year, month)
        tariff = await db.get(Tariff, employee.tariff_id) if employee.tariff_id else None
        rules = evaluation_rules(tariff)

        prev_year, prev_month = previous_month(year, month)
        previous = await _find_month(db, employee.id, prev_year, prev_month)
        carryover = previous.flextime_end if previous is not None else 0
        if month == 1 and previous is not None:
            carryover = calculate_annual_carryover(
                carryover, rules.annual_floor_balance if rules else None,
            )

        daily_values = (
            await db.execute(
                select(DailyValue)
                .where(
                    DailyValue.employee_id == employee.id,
                    DailyValue.value_date >= first,
                    DailyValue.value_date <= last,
                )
                .order_by(DailyValue.value_date),
            )
        ).scalars().all()
        absences = (
            await db.execute(
                select(AbsenceDay).where(
                    AbsenceDay.employee_id == employee.id,
                    AbsenceDay.absence_date >= first,
                    AbsenceDay.absence_date <= last,
                ),
            )
        ).scalars().all()

        output = calculate_month(
            MonthlyCalcInput(
                daily_values=[
                    DailyValueInput(
                        day=dv.value_date,
                        gross_time=dv.gross_time,
                        net_time=dv.net_time,
                        target_time=dv.target_time,
                        overtime=dv.overtime,
                        undertime=dv.undertime,
                        break_time=dv.break_time,
                        has_error=dv.has_error,
                    )
                    for dv in daily_values
                ],
                previous_carryover=carryover,
                rules=rules,
                absences=summarize_absences(absences),
            ),
        )

        monthly_value = existing
        if monthly_value is None:
            monthly_value = MonthlyValue(
                tenant_id=employee.tenant_id,
                employee_id=employee.id,
                year=year,
                month=month,
            )
            db.add(monthly_value)

        monthly_value.total_gross_time = output.total_gross_time
        monthly_value.total_net_time = output.total_net_time
        monthly_value.total_target_time = output.total_target_time
        monthly_value.total_overtime = output.total_overtime
        monthly_value.total_undertime = output.total_undertime
        monthly_value.total_break_time = output.total_break_time
        monthly_value.flextime_start = output.flextime_start
        monthly_value.flextime_change = output.flextime_change
        monthly_value.flextime_end = output.flextime_end
        if monthly_value.flextime_reset_at is not None:
            monthly_value.flextime_end = 0
        monthly_value.flextime_credited = output.flextime_credited
        monthly_value.flextime_forfeited = output.flextime_forfeited
        monthly_value.vacation_taken = output.vacation_taken
        monthly_value.sick_days = output.sick_days
        monthly_value.other_absence_days = output.other_absence_days
        monthly_value.work_days = output.work_days
        monthly_value.days_with_errors = output.days_with_errors
        monthly_value.warnings = list(output.warnings)
        await db.flush()
        return monthly_value

    @staticmethod
    async def recalculate_from_month(
        db: AsyncSession,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        year: int,
        month: int,
    ) -> BatchResult:
        """Recalculate *year*/*month* and every later month up to the current one.

        Closed months are skipped, failures are recorded and the cascade
        continues so the carryover chain stays as fresh as possible.
        """
        validate_year_month(year, month)
        await _get_employee(db, tenant_id, employee_id)
        result = BatchResult()
        current_year, current_month = year, month
        while not _is_future_month(current_year, current_month):
            try:
                await MonthlyEvalService.recalculate_month(
                    db, tenant_id, employee_id, current_year, current_month,
                )
                result.processed += 1
            except MonthClosedError:
                result.skipped += 1
            except AppException as exc:
                result.fail(employee_id, exc.detail, year=current_year, month=current_month)
            current_year, current_month = next_month(current_year, current_month)
        logger.info(
            "Cascade from %04d-%02d for employee %s: %d processed, %d skipped, %d failed",
            year, month, employee_id, result.processed, result.skipped, result.failed,
        )
        return result

    @staticmethod
    async def batch_recalculate(
        db: AsyncSession,
        ctx: RequestContext,
        year: int,
        month: int,
        employee_ids: Optional[list[uuid.UUID]] = None,
    ) -> BatchResult:
        validate_year_month(year, month)
        result = BatchResult()
        for employee_id in await _active_employee_ids(db, ctx.tenant_id, employee_ids):
            try:
                await MonthlyEvalService.recalculate_month(db, ctx.tenant_id, employee_id, year, month)
                result.processed += 1
            except MonthClosedError:
                result.skipped += 1
            except AppException as exc:
                result.fail(employee_id, exc.detail)
        logger.info(
            "Batch recalculation %04d-%02d: %d processed, %d skipped, %d failed",
            year, month, result.processed, result.skipped, result.failed,
        )
        return result

    # ── Close / reopen ──────────────────────────────────────────────

    @staticmethod
    async def close_month(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        year: int,
        month: int,
        reason: Optional[str],
    ) -> MonthlyValue:
        reason = require_reason(reason)
        monthly_value = await MonthlyEvalService.get_month(db, ctx, employee_id, year, month)
        if monthly_value.is_closed:
            raise InvalidStateError(f"Month {year:04d}-{month:02d} is already closed.")

        monthly_value.is_closed = True
        monthly_value.closed_at = datetime.now(timezone.utc)
        monthly_value.closed_by = ctx.user_id
        monthly_value.close_reason = reason
        await db.flush()

        await create_audit_entry(
            db,
            action="close",
            entity_type="monthly_value",
            entity_id=monthly_value.id,
            entity_name=f"{year:04d}-{month:02d}",
            new_values={"employee_id": employee_id, "reason": reason},
            **ctx.audit_kwargs(),
        )
        logger.info("Closed %04d-%02d for employee %s", year, month, employee_id)
        return monthly_value

    @staticmethod
    async def reopen_month(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        year: int,
        month: int,
        reason: Optional[str],
    ) -> MonthlyValue:
        reason = require_reason(reason)
        monthly_value = await MonthlyEvalService.get_month(db, ctx, employee_id, year, month)
        if not monthly_value.is_closed:
            raise InvalidStateError(f"Month {year:04d}-{month:02d} is not closed.")

        monthly_value.is_closed = False
        monthly_value.reopened_at = datetime.now(timezone.utc)
        monthly_value.reopened_by = ctx.user_id
        monthly_value.reopen_reason = reason
        await db.flush()

        await create_audit_entry(
            db,
            action="reopen",
            entity_type="monthly_value",
            entity_id=monthly_value.id,
            entity_name=f"{year:04d}-{month:02d}",
            new_values={"employee_id": employee_id, "reason": reason},
            **ctx.audit_kwargs(),
        )
        logger.info("Reopened %04d-%02d for employee %s", year, month, employee_id)
        return monthly_value

    @staticmethod
    async def batch_close(
        db: AsyncSession,
        ctx: RequestContext,
        year: int,
        month: int,
        reason: Optional[str],
        employee_ids: Optional[list[uuid.UUID]] = None,
        recalculate: bool = True,
    ) -> BatchResult:
        reason = require_reason(reason)
        validate_year_month(year, month)
        result = BatchResult()
        for employee_id in await _active_employee_ids(db, ctx.tenant_id, employee_ids):
            try:
                existing = await _find_month(db, employee_id, year, month)
                if existing is not None and existing.is_closed:
                    result.skipped += 1
                    continue
                if recalculate or existing is None:
                    await MonthlyEvalService.recalculate_month(
                        db, ctx.tenant_id, employee_id, year, month,
                    )
                await MonthlyEvalService.close_month(db, ctx, employee_id, year, month, reason)
                result.processed += 1
            except AppException as exc:
                result.fail(employee_id, exc.detail)
        logger.info(
            "Batch close %04d-%02d: %d closed, %d skipped, %d failed",
            year, month, result.processed, result.skipped, result.failed,
        )
        return result


# ═════════════════════════════════════════════════════════════════════
# RecalcService: day recalculation honouring closed months
# ═════════════════════════════════════════════════════════════════════


class RecalcService:

    @staticmethod
    async def ensure_month_open(db: AsyncSession, employee_id: uuid.UUID, day: date) -> None:
        monthly_value = await _find_month(db, employee_id, day.year, day.month)
        if monthly_value is not None and monthly_value.is_closed:
            raise MonthClosedError(day.year, day.month)

    @staticmethod
    async def refresh_month(
        db: AsyncSession,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        year: int,
        month: int,
    ) -> None:
        """Re-aggregate an existing, open monthly value; no-op otherwise."""
        monthly_value = await _find_month(db, employee_id, year, month)
        if monthly_value is None or monthly_value.is_closed:
            return
        employee = await _get_employee(db, tenant_id, employee_id)
        await MonthlyEvalService._compute(db, employee, year, month, monthly_value)

    @staticmethod
    async def recalculate_day(
        db: AsyncSession,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        day: date,
    ) -> DailyValue:
        await RecalcService.ensure_month_open(db, employee_id, day)
        daily_value = await DailyCalcService.calculate_day(db, tenant_id, employee_id, day)
        await RecalcService.refresh_month(db, tenant_id, employee_id, day.year, day.month)
        return daily_value

    @staticmethod
    async def recalculate_days(
        db: AsyncSession,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        days: Iterable[date],
    ) -> None:
        """Recalculate several days; refuses up front if any month is closed."""
        days = sorted(set(days))
        months = sorted({(d.year, d.month) for d in days})
        for year, month in months:
            await RecalcService.ensure_month_open(db, employee_id, date(year, month, 1))
        for day in days:
            await DailyCalcService.calculate_day(db, tenant_id, employee_id, day)
        for year, month in months:
            await RecalcService.refresh_month(db, tenant_id, employee_id, year, month)

    @staticmethod
    async def recalculate_range(
        db: AsyncSession,
        ctx: RequestContext,
        date_from: date,
        date_to: date,
        employee_id: Optional[uuid.UUID] = None,
    ) -> dict[str, Any]:
        """Recalculate every day in the range for one or all active employees."""
        if employee_id is not None:
            await _get_employee(db, ctx.tenant_id, employee_id)
        employee_ids = await _active_employee_ids(
            db, ctx.tenant_id, [employee_id] if employee_id else None,
        )
        processed = 0
        errors: list[dict[str, Any]] = []
        for emp_id in employee_ids:
            touched: set[tuple[int, int]] = set()
            for day in iter_days(date_from, date_to):
                try:
                    await RecalcService.ensure_month_open(db, emp_id, day)
                    await DailyCalcService.calculate_day(db, ctx.tenant_id, emp_id, day)
                    processed += 1
                    touched.add((day.year, day.month))
                except AppException as exc:
                    errors.append({"employee_id": emp_id, "date": day, "error": exc.detail})
            for year, month in sorted(touched):
                await RecalcService.refresh_month(db, ctx.tenant_id, emp_id, year, month)

        logger.info(
            "Recalculated %s..%s for %d employee(s): %d days processed, %d failed",
            date_from, date_to, len(employee_ids), processed, len(errors),
        )
        return {"processed_days": processed, "failed_days": len(errors), "errors": errors}
