"""Absence ORM models: AbsenceType, AbsenceDay."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timetrack.common.constants import ABSENCE_PORTION_FACTORS, AbsenceStatus
from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class AbsenceType(Base, TenantMixin, TimestampMixin):
    __tablename__ = "absence_types"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(sa.String(10), nullable=False)
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    category: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    # 0 = no credit, 1 = full regular hours, 2 = half
    portion: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=1)
    # > 0 overrides holiday credit when both fall on the same day
    priority: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    color: Mapped[Optional[str]] = mapped_column(sa.String(7))
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "code", name="uq_absence_types_tenant_code"),
    )

    @property
    def portion_factor(self) -> float:
        return ABSENCE_PORTION_FACTORS.get(self.portion, 0.0)


class AbsenceDay(Base, TenantMixin, TimestampMixin):
    __tablename__ = "absence_days"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    absence_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    absence_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("absence_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    # 1.0 = full day, 0.5 = half day
    duration: Mapped[float] = mapped_column(sa.Float, nullable=False, default=1.0)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=AbsenceStatus.pending.value,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )

    absence_type: Mapped["AbsenceType"] = relationship(lazy="selectin")

    __table_args__ = (
        sa.UniqueConstraint("employee_id", "absence_date", name="uq_absence_days_employee_date"),
    )

    def calculate_credit(self, target_minutes: int) -> int:
        """Credited minutes: target × portion × duration."""
        if self.absence_type is None:
            return 0
        return int(target_minutes * self.absence_type.portion_factor * self.duration)
