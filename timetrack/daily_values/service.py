"""Daily calculation service — resolves the day's inputs, runs the calculator, persists."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.absences.models import AbsenceDay
from timetrack.bookings.models import Booking
from timetrack.calculation import codes
from timetrack.calculation.calculator import Calculator
from timetrack.calculation.types import (
    BookingInput,
    BreakConfig,
    CalculationInput,
    CalculationResult,
    DayPlanInput,
    RoundingConfig,
    ToleranceConfig,
)
from timetrack.common.constants import (
    AbsenceStatus,
    BookingCategory,
    BookingDirection,
    BreakType,
    DailyValueStatus,
    NoBookingBehavior,
    PlanType,
    RoundingType,
)
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException
from timetrack.common.filters import apply_filters
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.daily_values.models import DailyValue
from timetrack.daily_values.schemas import DailyValueResponse
from timetrack.day_plans.models import DayPlan, EmployeeDayPlan
from timetrack.employees.models import Employee
from timetrack.holidays.models import Holiday
from timetrack.tariffs.models import Tariff

logger = logging.getLogger(__name__)

_calculator = Calculator()


# ═════════════════════════════════════════════════════════════════════
# Input resolution
# ═════════════════════════════════════════════════════════════════════


async def resolve_day_plan(
    db: AsyncSession,
    employee: Employee,
    day: date,
) -> Optional[DayPlan]:
    """Day plan in force for *employee* on *day*; ``None`` means off day.

    An explicit assignment for the date wins (a NULL plan there is an off
    day), otherwise the tariff's week plan entry for the weekday applies.
    """
    if not employee.is_employed_on(day):
        return None

    result = await db.execute(
        select(EmployeeDayPlan).where(
            EmployeeDayPlan.employee_id == employee.id,
            EmployeeDayPlan.plan_date == day,
        ),
    )
    assignment = result.scalars().first()
    if assignment is not None:
        if assignment.day_plan_id is None:
            return None
        return await db.get(DayPlan, assignment.day_plan_id)

    if employee.tariff_id is None:
        return None
    tariff = await db.get(Tariff, employee.tariff_id)
    if tariff is None:
        return None
    plan_id = tariff.day_plan_id_for(day)
    if plan_id is None:
        return None
    return await db.get(DayPlan, plan_id)


def build_day_plan_input(plan: DayPlan, target_minutes: int) -> DayPlanInput:
    """Translate a persisted day plan into the calculator's input."""
    return DayPlanInput(
        regular_hours=target_minutes,
        plan_type=PlanType(plan.plan_type),
        come_from=plan.come_from,
        come_to=plan.come_to,
        go_from=plan.go_from,
        go_to=plan.go_to,
        core_start=plan.core_start,
        core_end=plan.core_end,
        tolerance=ToleranceConfig(
            come_plus=plan.tolerance_come_plus,
            come_minus=plan.tolerance_come_minus,
            go_plus=plan.tolerance_go_plus,
            go_minus=plan.tolerance_go_minus,
        ),
        rounding_come=_rounding(
            plan.rounding_come_type, plan.rounding_come_interval, plan.rounding_come_add_value,
        ),
        rounding_go=_rounding(
            plan.rounding_go_type, plan.rounding_go_interval, plan.rounding_go_add_value,
        ),
        round_all_bookings=plan.round_all_bookings,
        breaks=[
            BreakConfig(
                type=BreakType(b.break_type),
                duration=b.duration,
                start_time=b.start_time,
                end_time=b.end_time,
                after_work_minutes=b.after_work_minutes,
                auto_deduct=b.auto_deduct,
                is_paid=b.is_paid,
                minutes_difference=b.minutes_difference,
            )
            for b in plan.breaks
        ],
        min_work_time=plan.min_work_time,
        max_net_work_time=plan.max_net_work_time,
        variable_work_time=plan.variable_work_time,
    )


def _rounding(kind: str, interval: int, add_value: int) -> Optional[RoundingConfig]:
    rounding_type = RoundingType(kind)
    if rounding_type == RoundingType.none:
        return None
    return RoundingConfig(type=rounding_type, interval=interval, add_value=add_value)


def to_booking_input(booking: Booking) -> BookingInput:
    return BookingInput(
        id=booking.id,
        time=booking.edited_time,
        direction=BookingDirection(booking.direction),
        category=BookingCategory(booking.category),
        pair_id=booking.pair_id,
    )


# ═════════════════════════════════════════════════════════════════════
# DailyCalcService
# ═════════════════════════════════════════════════════════════════════


class DailyCalcService:
    """Computes and upserts the DailyValue of one employee and date."""

    @staticmethod
    async def calculate_day(
        db: AsyncSession,
        tenant_id: uuid.UUID,
        employee_id: uuid.UUID,
        day: date,
    ) -> DailyValue:
        employee = await db.get(Employee, employee_id)
        if employee is None or employee.tenant_id != tenant_id:
            raise NotFoundException("Employee", employee_id)

        holiday = (
            await db.execute(
                select(Holiday).where(
                    Holiday.tenant_id == tenant_id,
                    Holiday.holiday_date == day,
                ),
            )
        ).scalars().first()

        bookings = list(
            (
                await db.execute(
                    select(Booking)
                    .where(
                        Booking.employee_id == employee_id,
                        Booking.booking_date == day,
                    )
                    .order_by(Booking.edited_time, Booking.created_at),
                )
            ).scalars().all(),
        )

        absence = (
            await db.execute(
                select(AbsenceDay).where(
                    AbsenceDay.employee_id == employee_id,
                    AbsenceDay.absence_date == day,
                    AbsenceDay.status == AbsenceStatus.approved.value,
                ),
            )
        ).scalars().first()

        plan = await resolve_day_plan(db, employee, day)
        values: dict
        if plan is None:
            values = _off_day(bookings)
        else:
            target = plan.get_effective_regular_hours(
                absence is not None, employee.daily_target_minutes,
            )
            if holiday is not None and not bookings:
                if absence is not None and absence.absence_type.priority > 0:
                    values = _credit(
                        target, absence.calculate_credit(target), codes.WARN_ABSENCE_ON_HOLIDAY,
                    )
                else:
                    values = _credit(
                        target, plan.get_holiday_credit(holiday.category), codes.WARN_HOLIDAY,
                    )
            elif absence is not None and not bookings:
                values = _credit(target, absence.calculate_credit(target), codes.WARN_ABSENCE)
            elif not bookings:
                values = _no_bookings(plan, target)
            else:
                result = _calculator.calculate(
                    CalculationInput(
                        employee_id=employee_id,
                        day=day,
                        bookings=[to_booking_input(b) for b in bookings],
                        day_plan=build_day_plan_input(plan, target),
                    ),
                )
                if holiday is not None:
                    result.warnings.append(codes.WARN_WORKED_ON_HOLIDAY)
                values = _from_result(result)
                for booking in bookings:
                    booking.calculated_time = result.calculated_times.get(booking.id)
                if result.has_error:
                    logger.debug(
                        "Day %s for employee %s has errors: %s",
                        day, employee_id, ", ".join(result.error_codes),
                    )

        return await _upsert(db, tenant_id, employee_id, day, values)


# ── Result builders ─────────────────────────────────────────────────

def _off_day(bookings: list[Booking]) -> dict:
    warnings = [codes.WARN_OFF_DAY]
    if bookings:
        warnings.append(codes.WARN_BOOKINGS_ON_OFF_DAY)
    return {
        "status": DailyValueStatus.calculated.value,
        "target_time": 0,
        "booking_count": len(bookings),
        "warnings": warnings,
    }


def _credit(target: int, credit: int, warning: str) -> dict:
    return {
        "status": DailyValueStatus.calculated.value,
        "target_time": target,
        "gross_time": credit,
        "net_time": credit,
        "overtime": max(credit - target, 0),
        "undertime": max(target - credit, 0),
        "warnings": [warning],
    }


def _no_bookings(plan: DayPlan, target: int) -> dict:
    behavior = NoBookingBehavior(plan.no_booking_behavior)
    if behavior in (NoBookingBehavior.adopt_target, NoBookingBehavior.target_with_order):
        return _credit(target, target, codes.WARN_NO_BOOKINGS_CREDITED)
    if behavior == NoBookingBehavior.vocational_school:
        return _credit(target, target, codes.WARN_VOCATIONAL_SCHOOL)
    if behavior == NoBookingBehavior.deduct_target:
        return _credit(target, 0, codes.WARN_NO_BOOKINGS_DEDUCTED)
    return {
        "status": DailyValueStatus.error.value,
        "target_time": target,
        "undertime": target,
        "has_error": True,
        "error_codes": [codes.ERR_NO_BOOKINGS],
    }


def _from_result(result: CalculationResult) -> dict:
    return {
        "status": (
            DailyValueStatus.error.value if result.has_error
            else DailyValueStatus.calculated.value
        ),
        "gross_time": result.gross_time,
        "net_time": result.net_time,
        "target_time": result.target_time,
        "overtime": result.overtime,
        "undertime": result.undertime,
        "break_time": result.break_time,
        "capped_time": result.capped_time,
        "first_come": result.first_come,
        "last_go": result.last_go,
        "booking_count": result.booking_count,
        "has_error": result.has_error,
        "error_codes": list(result.error_codes),
        "warnings": list(result.warnings),
    }


_RESET_VALUES = {
    "gross_time": 0,
    "net_time": 0,
    "target_time": 0,
    "overtime": 0,
    "undertime": 0,
    "break_time": 0,
    "capped_time": 0,
    "first_come": None,
    "last_go": None,
    "booking_count": 0,
    "has_error": False,
    "error_codes": [],
    "warnings": [],
}


async def _upsert(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID,
    day: date,
    values: dict,
) -> DailyValue:
    result = await db.execute(
        select(DailyValue).where(
            DailyValue.employee_id == employee_id,
            DailyValue.value_date == day,
        ),
    )
    daily_value = result.scalars().first()
    if daily_value is None:
        daily_value = DailyValue(tenant_id=tenant_id, employee_id=employee_id, value_date=day)
        db.add(daily_value)

    for field, value in {**_RESET_VALUES, **values}.items():
        setattr(daily_value, field, value)
    daily_value.calculated_at = datetime.now(timezone.utc)
    await db.flush()
    return daily_value


# ═════════════════════════════════════════════════════════════════════
# DailyValueService: read side
# ═════════════════════════════════════════════════════════════════════


class DailyValueService:

    @staticmethod
    async def list_daily_values(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        has_error: Optional[bool] = None,
        status: Optional[str] = None,
    ) -> PaginatedResponse:
        query = (
            select(DailyValue)
            .where(DailyValue.tenant_id == ctx.tenant_id)
            .order_by(DailyValue.value_date, DailyValue.employee_id)
        )
        query = apply_filters(
            query,
            DailyValue,
            {
                "employee_id": employee_id,
                "value_date__from": date_from,
                "value_date__to": date_to,
                "has_error": has_error,
                "status": status,
            },
        )
        return await paginate(db, query, pagination, model=DailyValue, schema=DailyValueResponse)

    @staticmethod
    async def list_for_employee(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        date_from: date,
        date_to: date,
    ) -> list[DailyValue]:
        employee = await db.get(Employee, employee_id)
        if employee is None or employee.tenant_id != ctx.tenant_id:
            raise NotFoundException("Employee", employee_id)
        result = await db.execute(
            select(DailyValue)
            .where(
                DailyValue.tenant_id == ctx.tenant_id,
                DailyValue.employee_id == employee_id,
                DailyValue.value_date >= date_from,
                DailyValue.value_date <= date_to,
            )
            .order_by(DailyValue.value_date),
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_daily_value(
        db: AsyncSession,
        ctx: RequestContext,
        daily_value_id: uuid.UUID,
    ) -> DailyValue:
        daily_value = await db.get(DailyValue, daily_value_id)
        if daily_value is None or daily_value.tenant_id != ctx.tenant_id:
            raise NotFoundException("DailyValue", daily_value_id)
        return daily_value
