"""Macro ORM models: Macro, MacroAssignment, MacroExecution."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timetrack.common.constants import ExecutionStatus, TriggerType
from timetrack.common.models import TenantMixin, TimestampMixin, utcnow
from timetrack.database import Base


class Macro(Base, TenantMixin, TimestampMixin):
    __tablename__ = "macros"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    macro_type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    action_type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    action_params: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    assignments: Mapped[list["MacroAssignment"]] = relationship(
        back_populates="macro",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "name", name="uq_macros_tenant_name"),
    )


class MacroAssignment(Base, TenantMixin, TimestampMixin):
    """Binds a macro to a tariff or to a single employee (exactly one)."""

    __tablename__ = "macro_assignments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    macro_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("macros.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tariff_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("tariffs.id", ondelete="RESTRICT"),
    )
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"),
    )
    # Weekly: 0 = Sunday … 6 = Saturday. Monthly: 1–31, clamped to month end
    execution_day: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    macro: Mapped["Macro"] = relationship(back_populates="assignments")

    __table_args__ = (
        sa.CheckConstraint(
            "(tariff_id IS NOT NULL AND employee_id IS NULL) OR "
            "(tariff_id IS NULL AND employee_id IS NOT NULL)",
            name="ck_macro_assignments_target",
        ),
    )


class MacroExecution(Base, TenantMixin):
    __tablename__ = "macro_executions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    macro_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("macros.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("macro_assignments.id", ondelete="SET NULL"),
    )
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=ExecutionStatus.pending.value,
    )
    trigger_type: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=TriggerType.manual.value,
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    result: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    error_message: Mapped[Optional[str]] = mapped_column(sa.Text)
    triggered_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow,
    )
