"""Day plan ORM models: DayPlan, DayPlanBreak, EmployeeDayPlan."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timetrack.common.constants import NoBookingBehavior, PlanType, RoundingType
from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class DayPlan(Base, TenantMixin, TimestampMixin):
    __tablename__ = "day_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    plan_type: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=PlanType.fixed.value,
    )

    # Booking windows and core time (minutes from midnight)
    come_from: Mapped[Optional[int]] = mapped_column(sa.Integer)
    come_to: Mapped[Optional[int]] = mapped_column(sa.Integer)
    go_from: Mapped[Optional[int]] = mapped_column(sa.Integer)
    go_to: Mapped[Optional[int]] = mapped_column(sa.Integer)
    core_start: Mapped[Optional[int]] = mapped_column(sa.Integer)
    core_end: Mapped[Optional[int]] = mapped_column(sa.Integer)

    # Target
    regular_hours: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=480)
    regular_hours_2: Mapped[Optional[int]] = mapped_column(sa.Integer)
    from_employee_master: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    # Tolerance
    tolerance_come_plus: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    tolerance_come_minus: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    tolerance_go_plus: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    tolerance_go_minus: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    # Rounding
    rounding_come_type: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=RoundingType.none.value,
    )
    rounding_come_interval: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    rounding_come_add_value: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    rounding_go_type: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=RoundingType.none.value,
    )
    rounding_go_interval: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    rounding_go_add_value: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    round_all_bookings: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    # Limits
    min_work_time: Mapped[Optional[int]] = mapped_column(sa.Integer)
    max_net_work_time: Mapped[Optional[int]] = mapped_column(sa.Integer)
    variable_work_time: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    # Holiday credit per category (1 = full, 2 = half, 3 = custom)
    holiday_credit_cat1: Mapped[Optional[int]] = mapped_column(sa.Integer)
    holiday_credit_cat2: Mapped[Optional[int]] = mapped_column(sa.Integer)
    holiday_credit_cat3: Mapped[Optional[int]] = mapped_column(sa.Integer)

    no_booking_behavior: Mapped[str] = mapped_column(
        sa.String(30), nullable=False, default=NoBookingBehavior.error.value,
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    breaks: Mapped[list["DayPlanBreak"]] = relationship(
        back_populates="day_plan",
        cascade="all, delete-orphan",
        order_by="DayPlanBreak.sort_order",
        lazy="selectin",
    )

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "code", name="uq_day_plans_tenant_code"),
    )

    def get_effective_regular_hours(
        self,
        is_absence_day: bool,
        employee_target_minutes: Optional[int],
    ) -> int:
        """Target minutes for a day.

        Employee master target (when enabled and set) wins, then the
        alternative target for absence days, then ``regular_hours``.
        """
        if self.from_employee_master and employee_target_minutes is not None:
            return employee_target_minutes
        if is_absence_day and self.regular_hours_2 is not None:
            return self.regular_hours_2
        return self.regular_hours

    def get_holiday_credit(self, category: int) -> int:
        credit = {
            1: self.holiday_credit_cat1,
            2: self.holiday_credit_cat2,
            3: self.holiday_credit_cat3,
        }.get(category)
        return credit or 0


class DayPlanBreak(Base):
    __tablename__ = "day_plan_breaks"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    day_plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("day_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    break_type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    start_time: Mapped[Optional[int]] = mapped_column(sa.Integer)
    end_time: Mapped[Optional[int]] = mapped_column(sa.Integer)
    duration: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    after_work_minutes: Mapped[Optional[int]] = mapped_column(sa.Integer)
    auto_deduct: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    is_paid: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    minutes_difference: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    day_plan: Mapped["DayPlan"] = relationship(back_populates="breaks")


class EmployeeDayPlan(Base, TenantMixin, TimestampMixin):
    """Explicit day plan for one employee on one date; NULL plan = off day."""

    __tablename__ = "employee_day_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    plan_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    day_plan_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("day_plans.id", ondelete="RESTRICT"),
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    __table_args__ = (
        sa.UniqueConstraint("employee_id", "plan_date", name="uq_employee_day_plans_employee_date"),
    )
