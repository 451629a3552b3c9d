"""Booking router — bookings and the time clock.

Routes:
    /bookings                       — Tenant-wide list
    /bookings/{id}                  — Get / correct / delete
    /employees/{id}/bookings        — An employee's bookings / create
    /employees/{id}/clock           — Clock status / clock action
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import check_employee_scope, get_context, require_context
from timetrack.bookings.schemas import (
    BookingCreate,
    BookingResponse,
    BookingUpdate,
    ClockRequest,
    ClockResponse,
    ClockStatus,
)
from timetrack.bookings.service import BookingService, TimeClockService
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db

bookings_router = APIRouter(prefix="", tags=["bookings"])
employee_bookings_router = APIRouter(prefix="", tags=["bookings"])


def _check_read(ctx: RequestContext, employee_id: uuid.UUID) -> None:
    check_employee_scope(
        ctx, employee_id, own_permission="bookings:read_own", all_permission="bookings:read_all",
    )


def _check_write(ctx: RequestContext, employee_id: uuid.UUID) -> None:
    check_employee_scope(
        ctx, employee_id, own_permission="bookings:write_own", all_permission="bookings:write_all",
    )


# ═════════════════════════════════════════════════════════════════════
# Bookings
# ═════════════════════════════════════════════════════════════════════


@bookings_router.get("")
async def list_bookings(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("bookings:read_all")),
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    source: Optional[str] = Query(None),
):
    result = await BookingService.list_bookings(
        db, ctx, pagination,
        employee_id=employee_id, date_from=date_from, date_to=date_to, source=source,
    )
    return result.model_dump(mode="json")


@bookings_router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    booking = await BookingService.get_booking(db, ctx, booking_id)
    _check_read(ctx, booking.employee_id)
    return booking


@bookings_router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: uuid.UUID,
    body: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    booking = await BookingService.get_booking(db, ctx, booking_id)
    _check_write(ctx, booking.employee_id)
    return await BookingService.update_booking(db, ctx, booking_id, body)


@bookings_router.delete("/{booking_id}", status_code=204)
async def delete_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    booking = await BookingService.get_booking(db, ctx, booking_id)
    _check_write(ctx, booking.employee_id)
    await BookingService.delete_booking(db, ctx, booking_id)


# ═════════════════════════════════════════════════════════════════════
# Per-employee
# ═════════════════════════════════════════════════════════════════════


@employee_bookings_router.get("/{employee_id}/bookings")
async def list_employee_bookings(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    pagination: PaginationParams = Depends(),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
):
    _check_read(ctx, employee_id)
    result = await BookingService.list_bookings(
        db, ctx, pagination, employee_id=employee_id, date_from=date_from, date_to=date_to,
    )
    return result.model_dump(mode="json")


@employee_bookings_router.post("/{employee_id}/bookings", status_code=201, response_model=BookingResponse)
async def create_booking(
    employee_id: uuid.UUID,
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    _check_write(ctx, employee_id)
    return await BookingService.create_booking(db, ctx, employee_id, body)


@employee_bookings_router.get("/{employee_id}/clock", response_model=ClockStatus)
async def clock_status(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    _check_read(ctx, employee_id)
    return await TimeClockService.status(db, ctx, employee_id)


@employee_bookings_router.post("/{employee_id}/clock", status_code=201, response_model=ClockResponse)
async def clock(
    employee_id: uuid.UUID,
    body: ClockRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    _check_write(ctx, employee_id)
    return await TimeClockService.clock(db, ctx, employee_id, body.action, body.notes)
