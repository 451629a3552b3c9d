"""Employee ORM model."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class Employee(Base, TenantMixin, TimestampMixin):
    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    personnel_number: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    pin: Mapped[Optional[str]] = mapped_column(sa.String(20))
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    entry_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    exit_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    weekly_hours: Mapped[Optional[float]] = mapped_column(sa.Float)
    daily_target_hours: Mapped[Optional[float]] = mapped_column(sa.Float)
    tariff_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("tariffs.id", ondelete="SET NULL"),
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "personnel_number", name="uq_employees_tenant_personnel_number"),
        sa.UniqueConstraint("tenant_id", "pin", name="uq_employees_tenant_pin"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def daily_target_minutes(self) -> Optional[int]:
        if self.daily_target_hours is None:
            return None
        return int(round(self.daily_target_hours * 60))

    def is_employed_on(self, day: date) -> bool:
        if day < self.entry_date:
            return False
        return self.exit_date is None or day <= self.exit_date

    def __repr__(self) -> str:
        return f"<Employee {self.personnel_number} {self.full_name}>"
