"""Booking and time clock Pydantic schemas.

Times are minutes from midnight (0–1439).
"""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from timetrack.common.constants import BookingCategory, BookingDirection, BookingSource, ClockAction


# ═════════════════════════════════════════════════════════════════════
# Bookings
# ═════════════════════════════════════════════════════════════════════


class BookingCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    booking_date: date
    direction: BookingDirection
    category: BookingCategory = BookingCategory.work
    time: int = Field(..., ge=0, le=1439, description="Booked time of day in minutes")
    pair_id: Optional[uuid.UUID] = None
    source: BookingSource = BookingSource.web
    notes: Optional[str] = None


class BookingUpdate(BaseModel):
    """Corrections change ``edited_time``; the originally booked time is kept."""

    model_config = ConfigDict(use_enum_values=True)

    booking_date: Optional[date] = None
    direction: Optional[BookingDirection] = None
    category: Optional[BookingCategory] = None
    edited_time: Optional[int] = Field(None, ge=0, le=1439)
    pair_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    employee_id: uuid.UUID
    booking_date: date
    direction: str
    category: str
    original_time: int
    edited_time: int
    calculated_time: Optional[int] = None
    pair_id: Optional[uuid.UUID] = None
    source: str
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Time clock
# ═════════════════════════════════════════════════════════════════════


class ClockRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    action: ClockAction
    notes: Optional[str] = None


class ClockStatus(BaseModel):
    employee_id: uuid.UUID
    day: date
    state: str
    allowed_actions: list[str]
    bookings: list[BookingResponse]


class ClockResponse(BaseModel):
    booking: BookingResponse
    state: str
