"""DailyValue ORM model — one calculated row per employee and date."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from timetrack.common.constants import DailyValueStatus
from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class DailyValue(Base, TenantMixin, TimestampMixin):
    __tablename__ = "daily_values"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    value_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=DailyValueStatus.pending.value,
    )

    gross_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    net_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    target_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    overtime: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    undertime: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    break_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    capped_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    first_come: Mapped[Optional[int]] = mapped_column(sa.Integer)
    last_go: Mapped[Optional[int]] = mapped_column(sa.Integer)
    booking_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    has_error: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    error_codes: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    warnings: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    calculated_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    __table_args__ = (
        sa.UniqueConstraint("employee_id", "value_date", name="uq_daily_values_employee_date"),
    )

    @property
    def balance(self) -> int:
        return self.overtime - self.undertime
