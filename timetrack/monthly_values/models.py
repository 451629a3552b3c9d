"""MonthlyValue ORM model — aggregated month per employee with close state."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class MonthlyValue(Base, TenantMixin, TimestampMixin):
    __tablename__ = "monthly_values"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    month: Mapped[int] = mapped_column(sa.Integer, nullable=False)

    total_gross_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    total_net_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    total_target_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    total_overtime: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    total_undertime: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    total_break_time: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    flextime_start: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    flextime_change: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    flextime_end: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    flextime_credited: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    flextime_forfeited: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    # Set by the reset macro; the month end balance stays zero from then on
    flextime_reset_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    vacation_taken: Mapped[float] = mapped_column(sa.Float, nullable=False, default=0.0)
    sick_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    other_absence_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    work_days: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    days_with_errors: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    warnings: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    is_closed: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    closed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    closed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    close_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    reopened_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    reopened_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    reopen_reason: Mapped[Optional[str]] = mapped_column(sa.Text)

    __table_args__ = (
        sa.UniqueConstraint("employee_id", "year", "month", name="uq_monthly_values_employee_month"),
    )

    @property
    def balance(self) -> int:
        return self.total_overtime - self.total_undertime
