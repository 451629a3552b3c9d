"""Macro service — macros, assignments, execution and scheduling.

Assignments bind a macro to one employee or to every active employee on a
tariff. Weekly macros run on ``execution_day`` 0 (Sunday) … 6; monthly
macros on day 1–31, clamped to the month's last day.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.constants import ExecutionStatus, MacroActionType, MacroType, TriggerType
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import AppException, NotFoundException, ValidationException
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.timeutil import (
    clamp_day_of_month,
    iter_days,
    month_bounds,
    previous_month,
    sunday_based_weekday,
    today,
)
from timetrack.common.validators import ensure_unique
from timetrack.employees.models import Employee
from timetrack.macros.models import Macro, MacroAssignment, MacroExecution
from timetrack.macros.schemas import (
    MacroAssignmentCreate,
    MacroAssignmentUpdate,
    MacroCreate,
    MacroExecutionResponse,
    MacroResponse,
    MacroUpdate,
)
from timetrack.monthly_values.service import MonthlyEvalService, RecalcService
from timetrack.tariffs.models import Tariff

logger = logging.getLogger(__name__)

_AUDIT_FIELDS = ["name", "description", "macro_type", "action_type", "action_params", "is_active"]


def _check_execution_day(macro_type: str, day: int) -> None:
    if macro_type == MacroType.weekly.value and not 0 <= day <= 6:
        raise ValidationException({"execution_day": ["weekly macros run on 0 (Sunday) to 6 (Saturday)"]})
    if macro_type == MacroType.monthly.value and not 1 <= day <= 31:
        raise ValidationException({"execution_day": ["monthly macros run on day 1 to 31"]})


def is_due(macro_type: str, execution_day: int, on: date) -> bool:
    if macro_type == MacroType.weekly.value:
        return sunday_based_weekday(on) == execution_day
    return clamp_day_of_month(on.year, on.month, execution_day) == on.day


# ═════════════════════════════════════════════════════════════════════
# MacroService: CRUD
# ═════════════════════════════════════════════════════════════════════


class MacroService:

    @staticmethod
    async def list_macros(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        macro_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(Macro).where(Macro.tenant_id == ctx.tenant_id).order_by(Macro.name)
        query = apply_filters(query, Macro, {"macro_type": macro_type, "is_active": is_active})
        query = apply_search(query, Macro, search, ["name", "description"])
        return await paginate(db, query, pagination, model=Macro, schema=MacroResponse)

    @staticmethod
    async def get_macro(db: AsyncSession, ctx: RequestContext, macro_id: uuid.UUID) -> Macro:
        macro = await db.get(Macro, macro_id)
        if macro is None or macro.tenant_id != ctx.tenant_id:
            raise NotFoundException("Macro", macro_id)
        return macro

    @staticmethod
    async def create_macro(db: AsyncSession, ctx: RequestContext, data: MacroCreate) -> Macro:
        await ensure_unique(db, Macro, "name", data.name, tenant_id=ctx.tenant_id)
        macro = Macro(tenant_id=ctx.tenant_id, assignments=[], **data.model_dump())
        db.add(macro)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="macro",
            entity_id=macro.id,
            entity_name=macro.name,
            new_values=snapshot(macro, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return macro

    @staticmethod
    async def update_macro(
        db: AsyncSession,
        ctx: RequestContext,
        macro_id: uuid.UUID,
        data: MacroUpdate,
    ) -> Macro:
        macro = await MacroService.get_macro(db, ctx, macro_id)
        updates = {
            k: v for k, v in data.model_dump(exclude_unset=True).items()
            if v is not None or k == "description"
        }
        if "name" in updates:
            await ensure_unique(
                db, Macro, "name", updates["name"], tenant_id=ctx.tenant_id, exclude_id=macro.id,
            )
        if updates.get("macro_type", macro.macro_type) != macro.macro_type:
            for assignment in macro.assignments:
                _check_execution_day(updates["macro_type"], assignment.execution_day)

        old_values = snapshot(macro, _AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(macro, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="macro",
            entity_id=macro.id,
            entity_name=macro.name,
            old_values=old_values,
            new_values=snapshot(macro, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return macro

    @staticmethod
    async def delete_macro(db: AsyncSession, ctx: RequestContext, macro_id: uuid.UUID) -> None:
        macro = await MacroService.get_macro(db, ctx, macro_id)
        old_values = snapshot(macro, _AUDIT_FIELDS)
        await db.delete(macro)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="macro",
            entity_id=macro_id,
            entity_name=macro.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )

    # ── Assignments ─────────────────────────────────────────────────

    @staticmethod
    async def add_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        macro_id: uuid.UUID,
        data: MacroAssignmentCreate,
    ) -> MacroAssignment:
        macro = await MacroService.get_macro(db, ctx, macro_id)
        _check_execution_day(macro.macro_type, data.execution_day)
        if data.tariff_id is not None:
            tariff = await db.get(Tariff, data.tariff_id)
            if tariff is None or tariff.tenant_id != ctx.tenant_id:
                raise ValidationException({"tariff_id": ["unknown tariff"]})
        if data.employee_id is not None:
            employee = await db.get(Employee, data.employee_id)
            if employee is None or employee.tenant_id != ctx.tenant_id:
                raise ValidationException({"employee_id": ["unknown employee"]})

        assignment = MacroAssignment(tenant_id=ctx.tenant_id, **data.model_dump())
        macro.assignments.append(assignment)
        await db.flush()
        return assignment

    @staticmethod
    async def get_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        macro_id: uuid.UUID,
        assignment_id: uuid.UUID,
    ) -> tuple[Macro, MacroAssignment]:
        macro = await MacroService.get_macro(db, ctx, macro_id)
        for assignment in macro.assignments:
            if assignment.id == assignment_id:
                return macro, assignment
        raise NotFoundException("MacroAssignment", assignment_id)

    @staticmethod
    async def update_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        macro_id: uuid.UUID,
        assignment_id: uuid.UUID,
        data: MacroAssignmentUpdate,
    ) -> MacroAssignment:
        macro, assignment = await MacroService.get_assignment(db, ctx, macro_id, assignment_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if "execution_day" in updates:
            _check_execution_day(macro.macro_type, updates["execution_day"])
        for field, value in updates.items():
            setattr(assignment, field, value)
        await db.flush()
        return assignment

    @staticmethod
    async def delete_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        macro_id: uuid.UUID,
        assignment_id: uuid.UUID,
    ) -> None:
        macro, assignment = await MacroService.get_assignment(db, ctx, macro_id, assignment_id)
        macro.assignments.remove(assignment)
        await db.flush()

    # ── Executions ──────────────────────────────────────────────────

    @staticmethod
    async def list_executions(
        db: AsyncSession,
        ctx: RequestContext,
        macro_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        status: Optional[str] = None,
    ) -> PaginatedResponse:
        await MacroService.get_macro(db, ctx, macro_id)
        query = (
            select(MacroExecution)
            .where(MacroExecution.macro_id == macro_id)
            .order_by(MacroExecution.created_at.desc())
        )
        query = apply_filters(query, MacroExecution, {"status": status})
        return await paginate(
            db, query, pagination, model=MacroExecution, schema=MacroExecutionResponse,
        )

    @staticmethod
    async def execute(
        db: AsyncSession,
        ctx: RequestContext,
        macro_id: uuid.UUID,
        *,
        on: Optional[date] = None,
        assignment_id: Optional[uuid.UUID] = None,
    ) -> MacroExecution:
        """Run a macro now for one assignment or all of its active assignments."""
        macro = await MacroService.get_macro(db, ctx, macro_id)
        if not macro.is_active:
            raise ValidationException({"macro": ["inactive macros cannot be executed"]})
        if assignment_id is not None:
            _, assignment = await MacroService.get_assignment(db, ctx, macro_id, assignment_id)
            assignments = [assignment]
        else:
            assignments = [a for a in macro.assignments if a.is_active]

        execution = await MacroExecutor.run(
            db, ctx, macro, assignments, on or today(), TriggerType.manual,
            assignment_id=assignment_id,
        )
        await create_audit_entry(
            db,
            action="execute",
            entity_type="macro",
            entity_id=macro.id,
            entity_name=macro.name,
            new_values={"execution_id": execution.id, "status": execution.status},
            **ctx.audit_kwargs(),
        )
        return execution

    @staticmethod
    async def execute_due(
        db: AsyncSession,
        ctx: RequestContext,
        on: Optional[date] = None,
    ) -> list[MacroExecution]:
        """Run every active assignment of every active macro due on *on*."""
        on = on or today()
        result = await db.execute(
            select(Macro)
            .where(Macro.tenant_id == ctx.tenant_id, Macro.is_active.is_(True))
            .order_by(Macro.name),
        )
        executions: list[MacroExecution] = []
        for macro in result.scalars().all():
            for assignment in macro.assignments:
                if not assignment.is_active or not is_due(macro.macro_type, assignment.execution_day, on):
                    continue
                executions.append(
                    await MacroExecutor.run(
                        db, ctx, macro, [assignment], on, TriggerType.scheduled,
                        assignment_id=assignment.id,
                    ),
                )
        logger.info(
            "Executed %d due macro assignment(s) for tenant %s on %s",
            len(executions), ctx.tenant_id, on,
        )
        return executions


# ═════════════════════════════════════════════════════════════════════
# MacroExecutor: action implementations
# ═════════════════════════════════════════════════════════════════════


class MacroExecutor:

    @staticmethod
    async def covered_employees(
        db: AsyncSession,
        tenant_id: uuid.UUID,
        assignments: list[MacroAssignment],
    ) -> list[uuid.UUID]:
        employee_ids: list[uuid.UUID] = []
        for assignment in assignments:
            if assignment.employee_id is not None:
                query = select(Employee.id).where(
                    Employee.id == assignment.employee_id, Employee.is_active.is_(True),
                )
            else:
                query = select(Employee.id).where(
                    Employee.tenant_id == tenant_id,
                    Employee.tariff_id == assignment.tariff_id,
                    Employee.is_active.is_(True),
                ).order_by(Employee.personnel_number)
            for employee_id in (await db.execute(query)).scalars().all():
                if employee_id not in employee_ids:
                    employee_ids.append(employee_id)
        return employee_ids

    @staticmethod
    async def run(
        db: AsyncSession,
        ctx: RequestContext,
        macro: Macro,
        assignments: list[MacroAssignment],
        on: date,
        trigger: TriggerType,
        *,
        assignment_id: Optional[uuid.UUID] = None,
    ) -> MacroExecution:
        execution = MacroExecution(
            tenant_id=ctx.tenant_id,
            macro_id=macro.id,
            assignment_id=assignment_id,
            status=ExecutionStatus.running.value,
            trigger_type=trigger.value,
            started_at=datetime.now(timezone.utc),
            triggered_by=ctx.user_id,
            result={},
        )
        db.add(execution)
        await db.flush()

        employee_ids = await MacroExecutor.covered_employees(db, ctx.tenant_id, assignments)
        result: dict[str, Any] = {
            "action_type": macro.action_type,
            "date": on.isoformat(),
            "employees": len(employee_ids),
            "processed": 0,
            "skipped": 0,
            "errors": [],
        }

        if macro.action_type == MacroActionType.log_message.value:
            message = macro.action_params.get("message") or macro.name
            logger.info("Macro %s: %s", macro.name, message)
            result["message"] = message
        else:
            action = _ACTIONS[MacroActionType(macro.action_type)]
            for employee_id in employee_ids:
                try:
                    done = await action(db, ctx.tenant_id, employee_id, on)
                except AppException as exc:
                    result["errors"].append({"employee_id": str(employee_id), "error": exc.detail})
                    continue
                result["processed" if done else "skipped"] += 1

        failed = bool(employee_ids) and len(result["errors"]) == len(employee_ids)
        execution.status = (ExecutionStatus.failed if failed else ExecutionStatus.completed).value
        execution.error_message = result["errors"][0]["error"] if failed else None
        execution.result = result
        execution.completed_at = datetime.now(timezone.utc)
        await db.flush()

        log = logger.warning if failed else logger.info
        log(
            "Macro %s (%s) %s on %s: %d processed, %d skipped, %d failed",
            macro.name, macro.action_type, execution.status, on,
            result["processed"], result["skipped"], len(result["errors"]),
        )
        return execution


async def _recalculate_target_hours(
    db: AsyncSession, tenant_id: uuid.UUID, employee_id: uuid.UUID, on: date,
) -> bool:
    first, last = month_bounds(on.year, on.month)
    await RecalcService.recalculate_days(db, tenant_id, employee_id, iter_days(first, min(last, on)))
    return True


async def _reset_flextime(
    db: AsyncSession, tenant_id: uuid.UUID, employee_id: uuid.UUID, on: date,
) -> bool:
    year, month = previous_month(on.year, on.month) if on.day == 1 else (on.year, on.month)
    ctx = RequestContext.system(tenant_id)
    monthly_value = await MonthlyEvalService.find_month(db, ctx, employee_id, year, month)
    if monthly_value is None or monthly_value.is_closed:
        return False
    monthly_value.flextime_end = 0
    monthly_value.flextime_reset_at = datetime.now(timezone.utc)
    await db.flush()
    return True


async def _carry_forward_balance(
    db: AsyncSession, tenant_id: uuid.UUID, employee_id: uuid.UUID, on: date,
) -> bool:
    await MonthlyEvalService.recalculate_month(db, tenant_id, employee_id, on.year, on.month)
    return True


_ACTIONS = {
    MacroActionType.recalculate_target_hours: _recalculate_target_hours,
    MacroActionType.reset_flextime: _reset_flextime,
    MacroActionType.carry_forward_balance: _carry_forward_balance,
}
