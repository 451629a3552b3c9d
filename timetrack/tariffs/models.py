"""Tariff ORM model: week plan plus monthly evaluation rules."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from timetrack.common.constants import CreditType
from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base

WEEKDAY_COLUMNS = (
    "day_plan_monday_id",
    "day_plan_tuesday_id",
    "day_plan_wednesday_id",
    "day_plan_thursday_id",
    "day_plan_friday_id",
    "day_plan_saturday_id",
    "day_plan_sunday_id",
)


def _day_plan_fk() -> Mapped[Optional[uuid.UUID]]:
    return mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("day_plans.id", ondelete="SET NULL"),
    )


class Tariff(Base, TenantMixin, TimestampMixin):
    __tablename__ = "tariffs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Week plan; None = off day
    day_plan_monday_id: Mapped[Optional[uuid.UUID]] = _day_plan_fk()
    day_plan_tuesday_id: Mapped[Optional[uuid.UUID]] = _day_plan_fk()
    day_plan_wednesday_id: Mapped[Optional[uuid.UUID]] = _day_plan_fk()
    day_plan_thursday_id: Mapped[Optional[uuid.UUID]] = _day_plan_fk()
    day_plan_friday_id: Mapped[Optional[uuid.UUID]] = _day_plan_fk()
    day_plan_saturday_id: Mapped[Optional[uuid.UUID]] = _day_plan_fk()
    day_plan_sunday_id: Mapped[Optional[uuid.UUID]] = _day_plan_fk()

    # Monthly evaluation (minutes)
    credit_type: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=CreditType.no_evaluation.value,
    )
    flextime_threshold: Mapped[Optional[int]] = mapped_column(sa.Integer)
    max_flextime_per_month: Mapped[Optional[int]] = mapped_column(sa.Integer)
    upper_limit_annual: Mapped[Optional[int]] = mapped_column(sa.Integer)
    lower_limit_annual: Mapped[Optional[int]] = mapped_column(sa.Integer)
    annual_floor_balance: Mapped[Optional[int]] = mapped_column(sa.Integer)

    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "code", name="uq_tariffs_tenant_code"),
    )

    def day_plan_id_for(self, day: date) -> Optional[uuid.UUID]:
        return getattr(self, WEEKDAY_COLUMNS[day.weekday()])
