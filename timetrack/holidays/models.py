"""Holiday ORM model."""

from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class Holiday(Base, TenantMixin, TimestampMixin):
    __tablename__ = "holidays"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    holiday_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    # 1 = full credit, 2 = half, 3 = custom (credit comes from the day plan)
    category: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=1)
    applies_to_all: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "holiday_date", name="uq_holidays_tenant_date"),
    )
