"""Employee service layer — async CRUD, day plan assignments.

Uses:
  - ``paginate()`` from timetrack.common.pagination
  - ``apply_filters / apply_search`` from timetrack.common.filters
  - ``create_audit_entry`` from timetrack.common.audit
  - ``RecalcService`` to refresh daily values after assignment changes
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.absences.models import AbsenceDay
from timetrack.bookings.models import Booking
from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException, ValidationException
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.validators import ensure_immutable, ensure_not_referenced, ensure_unique
from timetrack.daily_values.models import DailyValue
from timetrack.day_plans.models import DayPlan, EmployeeDayPlan
from timetrack.employees.models import Employee
from timetrack.employees.schemas import (
    DayPlanAssignmentUpsert,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
)
from timetrack.monthly_values.service import RecalcService
from timetrack.tariffs.models import Tariff

_AUDIT_FIELDS = [
    "personnel_number", "pin", "first_name", "last_name", "email",
    "entry_date", "exit_date", "weekly_hours", "daily_target_hours",
    "tariff_id", "is_active",
]


async def _ensure_tariff(db: AsyncSession, tenant_id: uuid.UUID, tariff_id: Optional[uuid.UUID]) -> None:
    if tariff_id is None:
        return
    tariff = await db.get(Tariff, tariff_id)
    if tariff is None or tariff.tenant_id != tenant_id:
        raise ValidationException({"tariff_id": ["unknown tariff"]})


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations for employees."""

    # ── List (paginated, searchable, filterable) ────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        tariff_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = (
            select(Employee)
            .where(Employee.tenant_id == ctx.tenant_id)
            .order_by(Employee.last_name, Employee.first_name)
        )
        query = apply_filters(query, Employee, {"tariff_id": tariff_id, "is_active": is_active})
        query = apply_search(
            query, Employee, search, ["first_name", "last_name", "personnel_number", "email"],
        )
        return await paginate(db, query, pagination, model=Employee, schema=EmployeeResponse)

    # ── Single ──────────────────────────────────────────────────────

    @staticmethod
    async def get_employee(db: AsyncSession, ctx: RequestContext, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None or employee.tenant_id != ctx.tenant_id:
            raise NotFoundException("Employee", employee_id)
        return employee

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(db: AsyncSession, ctx: RequestContext, data: EmployeeCreate) -> Employee:
        await ensure_unique(db, Employee, "personnel_number", data.personnel_number, tenant_id=ctx.tenant_id)
        if data.pin:
            await ensure_unique(db, Employee, "pin", data.pin, tenant_id=ctx.tenant_id)
        await _ensure_tariff(db, ctx.tenant_id, data.tariff_id)

        employee = Employee(tenant_id=ctx.tenant_id, **data.model_dump())
        if not employee.pin:
            employee.pin = None
        db.add(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="employee",
            entity_id=employee.id,
            entity_name=employee.full_name,
            new_values=snapshot(employee, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return employee

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
    ) -> Employee:
        employee = await EmployeeService.get_employee(db, ctx, employee_id)
        updates = data.model_dump(exclude_unset=True)
        ensure_immutable(employee, updates, ["personnel_number"])

        if updates.get("pin"):
            await ensure_unique(
                db, Employee, "pin", updates["pin"], tenant_id=ctx.tenant_id, exclude_id=employee.id,
            )
        elif "pin" in updates:
            updates["pin"] = None
        if "tariff_id" in updates:
            await _ensure_tariff(db, ctx.tenant_id, updates["tariff_id"])

        entry_date = updates.get("entry_date", employee.entry_date)
        exit_date = updates.get("exit_date", employee.exit_date)
        if entry_date is None:
            raise ValidationException({"entry_date": ["is required"]})
        if exit_date is not None and exit_date < entry_date:
            raise ValidationException({"exit_date": ["must not be before entry_date"]})

        old_values = snapshot(employee, _AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(employee, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="employee",
            entity_id=employee.id,
            entity_name=employee.full_name,
            old_values=old_values,
            new_values=snapshot(employee, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return employee

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_employee(db: AsyncSession, ctx: RequestContext, employee_id: uuid.UUID) -> None:
        employee = await EmployeeService.get_employee(db, ctx, employee_id)
        await ensure_not_referenced(
            db,
            "Employee",
            [
                (Booking.employee_id, employee.id, "bookings"),
                (AbsenceDay.employee_id, employee.id, "absences"),
                (DailyValue.employee_id, employee.id, "daily values"),
            ],
        )
        old_values = snapshot(employee, _AUDIT_FIELDS)
        await db.delete(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="employee",
            entity_id=employee_id,
            entity_name=employee.full_name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )


# ═════════════════════════════════════════════════════════════════════
# DayPlanAssignmentService
# ═════════════════════════════════════════════════════════════════════


class DayPlanAssignmentService:
    """Explicit per-date day plans; each change recalculates the day."""

    @staticmethod
    async def list_assignments(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        date_from: date,
        date_to: date,
    ) -> list[EmployeeDayPlan]:
        await EmployeeService.get_employee(db, ctx, employee_id)
        if date_to < date_from:
            raise ValidationException({"to": ["must not be before 'from'"]})
        result = await db.execute(
            select(EmployeeDayPlan)
            .where(
                EmployeeDayPlan.employee_id == employee_id,
                EmployeeDayPlan.plan_date >= date_from,
                EmployeeDayPlan.plan_date <= date_to,
            )
            .order_by(EmployeeDayPlan.plan_date),
        )
        return list(result.scalars().all())

    @staticmethod
    async def upsert_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        plan_date: date,
        data: DayPlanAssignmentUpsert,
    ) -> EmployeeDayPlan:
        await EmployeeService.get_employee(db, ctx, employee_id)
        if data.day_plan_id is not None:
            plan = await db.get(DayPlan, data.day_plan_id)
            if plan is None or plan.tenant_id != ctx.tenant_id:
                raise ValidationException({"day_plan_id": ["unknown day plan"]})
        await RecalcService.ensure_month_open(db, employee_id, plan_date)

        result = await db.execute(
            select(EmployeeDayPlan).where(
                EmployeeDayPlan.employee_id == employee_id,
                EmployeeDayPlan.plan_date == plan_date,
            ),
        )
        assignment = result.scalars().first()
        if assignment is None:
            assignment = EmployeeDayPlan(
                tenant_id=ctx.tenant_id,
                employee_id=employee_id,
                plan_date=plan_date,
            )
            db.add(assignment)
        assignment.day_plan_id = data.day_plan_id
        assignment.notes = data.notes
        await db.flush()

        await RecalcService.recalculate_day(db, ctx.tenant_id, employee_id, plan_date)
        return assignment

    @staticmethod
    async def delete_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        plan_date: date,
    ) -> None:
        await EmployeeService.get_employee(db, ctx, employee_id)
        result = await db.execute(
            select(EmployeeDayPlan).where(
                EmployeeDayPlan.employee_id == employee_id,
                EmployeeDayPlan.plan_date == plan_date,
            ),
        )
        assignment = result.scalars().first()
        if assignment is None:
            raise NotFoundException("EmployeeDayPlan", f"{employee_id}/{plan_date.isoformat()}")
        await RecalcService.ensure_month_open(db, employee_id, plan_date)
        await db.delete(assignment)
        await db.flush()

        await RecalcService.recalculate_day(db, ctx.tenant_id, employee_id, plan_date)
