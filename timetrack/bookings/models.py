"""Booking ORM model."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from timetrack.common.constants import BookingCategory, BookingSource
from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class Booking(Base, TenantMixin, TimestampMixin):
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    booking_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    direction: Mapped[str] = mapped_column(sa.String(3), nullable=False)
    category: Mapped[str] = mapped_column(
        sa.String(10), nullable=False, default=BookingCategory.work.value,
    )
    # Minutes from midnight: as booked, as corrected, as evaluated
    original_time: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    edited_time: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    calculated_time: Mapped[Optional[int]] = mapped_column(sa.Integer)
    pair_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))
    source: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=BookingSource.web.value,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )

    __table_args__ = (
        sa.Index("ix_bookings_employee_date", "employee_id", "booking_date"),
    )
