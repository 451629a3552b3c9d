"""Access control ORM models: zones, profiles, employee assignments."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class AccessZone(Base, TenantMixin, TimestampMixin):
    __tablename__ = "access_zones"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "code", name="uq_access_zones_tenant_code"),
    )


class AccessProfileZone(Base):
    __tablename__ = "access_profile_zones"

    profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("access_profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    zone_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("access_zones.id", ondelete="RESTRICT"),
        primary_key=True,
    )


class AccessProfile(Base, TenantMixin, TimestampMixin):
    __tablename__ = "access_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    zone_links: Mapped[list["AccessProfileZone"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "code", name="uq_access_profiles_tenant_code"),
    )

    @property
    def zone_ids(self) -> list[uuid.UUID]:
        return [link.zone_id for link in self.zone_links]


class EmployeeAccessAssignment(Base, TenantMixin, TimestampMixin):
    __tablename__ = "employee_access_assignments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("access_profiles.id", ondelete="RESTRICT"),
        nullable=False,
    )
    valid_from: Mapped[Optional[date]] = mapped_column(sa.Date)
    valid_to: Mapped[Optional[date]] = mapped_column(sa.Date)
