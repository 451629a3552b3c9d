"""Booking service — booking CRUD and the time clock.

Every write recalculates the affected day(s); bookings in a closed month
cannot be created, changed or deleted.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.bookings.models import Booking
from timetrack.bookings.schemas import BookingCreate, BookingResponse, BookingUpdate
from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.constants import (
    BookingCategory,
    BookingDirection,
    BookingSource,
    ClockAction,
    ClockState,
)
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException, ValidationException
from timetrack.common.filters import apply_filters
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.timeutil import local_now, minutes_since_midnight
from timetrack.employees.models import Employee
from timetrack.monthly_values.service import RecalcService

_AUDIT_FIELDS = [
    "booking_date", "direction", "category", "original_time", "edited_time",
    "pair_id", "source", "notes",
]

# action → (direction, category, state required before, state after)
_CLOCK_TRANSITIONS: dict[ClockAction, tuple[BookingDirection, BookingCategory, ClockState, ClockState]] = {
    ClockAction.clock_in: (BookingDirection.in_, BookingCategory.work, ClockState.clocked_out, ClockState.clocked_in),
    ClockAction.clock_out: (BookingDirection.out, BookingCategory.work, ClockState.clocked_in, ClockState.clocked_out),
    ClockAction.break_start: (BookingDirection.out, BookingCategory.break_, ClockState.clocked_in, ClockState.on_break),
    ClockAction.break_end: (BookingDirection.in_, BookingCategory.break_, ClockState.on_break, ClockState.clocked_in),
}


async def _get_employee(db: AsyncSession, ctx: RequestContext, employee_id: uuid.UUID) -> Employee:
    employee = await db.get(Employee, employee_id)
    if employee is None or employee.tenant_id != ctx.tenant_id:
        raise NotFoundException("Employee", employee_id)
    return employee


def clock_state(bookings: list[Booking]) -> ClockState:
    """Derive the clock state from a day's bookings in time order."""
    if not bookings:
        return ClockState.clocked_out
    last = bookings[-1]
    if last.category == BookingCategory.break_.value:
        if last.direction == BookingDirection.out.value:
            return ClockState.on_break
        return ClockState.clocked_in
    if last.direction == BookingDirection.in_.value:
        return ClockState.clocked_in
    return ClockState.clocked_out


def allowed_actions(state: ClockState) -> list[ClockAction]:
    return [action for action, (_, _, before, _) in _CLOCK_TRANSITIONS.items() if before == state]


class BookingService:

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def list_bookings(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        source: Optional[str] = None,
    ) -> PaginatedResponse:
        query = (
            select(Booking)
            .where(Booking.tenant_id == ctx.tenant_id)
            .order_by(Booking.booking_date, Booking.edited_time)
        )
        query = apply_filters(
            query,
            Booking,
            {
                "employee_id": employee_id,
                "booking_date__from": date_from,
                "booking_date__to": date_to,
                "source": source,
            },
        )
        return await paginate(db, query, pagination, model=Booking, schema=BookingResponse)

    @staticmethod
    async def get_booking(db: AsyncSession, ctx: RequestContext, booking_id: uuid.UUID) -> Booking:
        booking = await db.get(Booking, booking_id)
        if booking is None or booking.tenant_id != ctx.tenant_id:
            raise NotFoundException("Booking", booking_id)
        return booking

    @staticmethod
    async def day_bookings(db: AsyncSession, employee_id: uuid.UUID, day: date) -> list[Booking]:
        result = await db.execute(
            select(Booking)
            .where(Booking.employee_id == employee_id, Booking.booking_date == day)
            .order_by(Booking.edited_time, Booking.created_at),
        )
        return list(result.scalars().all())

    # ── Write ───────────────────────────────────────────────────────

    @staticmethod
    async def create_booking(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        data: BookingCreate,
    ) -> Booking:
        await _get_employee(db, ctx, employee_id)
        await RecalcService.ensure_month_open(db, employee_id, data.booking_date)

        booking = Booking(
            tenant_id=ctx.tenant_id,
            employee_id=employee_id,
            booking_date=data.booking_date,
            direction=data.direction,
            category=data.category,
            original_time=data.time,
            edited_time=data.time,
            pair_id=data.pair_id,
            source=data.source,
            notes=data.notes,
            created_by=ctx.user_id,
        )
        db.add(booking)
        await db.flush()

        await RecalcService.recalculate_day(db, ctx.tenant_id, employee_id, booking.booking_date)
        await create_audit_entry(
            db,
            action="create",
            entity_type="booking",
            entity_id=booking.id,
            new_values=snapshot(booking, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return booking

    @staticmethod
    async def update_booking(
        db: AsyncSession,
        ctx: RequestContext,
        booking_id: uuid.UUID,
        data: BookingUpdate,
    ) -> Booking:
        booking = await BookingService.get_booking(db, ctx, booking_id)
        updates = data.model_dump(exclude_unset=True)
        updates = {k: v for k, v in updates.items() if v is not None or k in ("pair_id", "notes")}

        days = {booking.booking_date, updates.get("booking_date", booking.booking_date)}
        for day in days:
            await RecalcService.ensure_month_open(db, booking.employee_id, day)

        old_values = snapshot(booking, _AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(booking, field, value)
        await db.flush()

        await RecalcService.recalculate_days(db, ctx.tenant_id, booking.employee_id, days)
        await create_audit_entry(
            db,
            action="update",
            entity_type="booking",
            entity_id=booking.id,
            old_values=old_values,
            new_values=snapshot(booking, _AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return booking

    @staticmethod
    async def delete_booking(db: AsyncSession, ctx: RequestContext, booking_id: uuid.UUID) -> None:
        booking = await BookingService.get_booking(db, ctx, booking_id)
        employee_id, day = booking.employee_id, booking.booking_date
        await RecalcService.ensure_month_open(db, employee_id, day)

        old_values = snapshot(booking, _AUDIT_FIELDS)
        await db.delete(booking)
        await db.flush()

        await RecalcService.recalculate_day(db, ctx.tenant_id, employee_id, day)
        await create_audit_entry(
            db,
            action="delete",
            entity_type="booking",
            entity_id=booking_id,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )


# ═════════════════════════════════════════════════════════════════════
# TimeClockService
# ═════════════════════════════════════════════════════════════════════


class TimeClockService:

    @staticmethod
    async def status(db: AsyncSession, ctx: RequestContext, employee_id: uuid.UUID) -> dict:
        await _get_employee(db, ctx, employee_id)
        day = local_now().date()
        bookings = await BookingService.day_bookings(db, employee_id, day)
        state = clock_state(bookings)
        return {
            "employee_id": employee_id,
            "day": day,
            "state": state.value,
            "allowed_actions": [a.value for a in allowed_actions(state)],
            "bookings": [BookingResponse.model_validate(b) for b in bookings],
        }

    @staticmethod
    async def clock(
        db: AsyncSession,
        ctx: RequestContext,
        employee_id: uuid.UUID,
        action: str,
        notes: Optional[str] = None,
    ) -> dict:
        await _get_employee(db, ctx, employee_id)
        now = local_now()
        day = now.date()
        state = clock_state(await BookingService.day_bookings(db, employee_id, day))

        direction, category, required, after = _CLOCK_TRANSITIONS[ClockAction(action)]
        if state != required:
            raise ValidationException(
                {"action": [f"'{action}' is not allowed while {state.value}"]},
            )

        booking = await BookingService.create_booking(
            db,
            ctx,
            employee_id,
            BookingCreate(
                booking_date=day,
                direction=direction,
                category=category,
                time=minutes_since_midnight(now),
                source=BookingSource.clock,
                notes=notes,
            ),
        )
        return {"booking": BookingResponse.model_validate(booking), "state": after.value}
