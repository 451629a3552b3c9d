"""Payroll export ORM models: Account, ExportInterface, ExportInterfaceAccount."""

from __future__ import annotations

import uuid
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timetrack.common.constants import AccountType, AccountUnit
from timetrack.common.models import TenantMixin, TimestampMixin
from timetrack.database import Base


class Account(Base, TenantMixin, TimestampMixin):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    account_type: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=AccountType.day.value,
    )
    unit: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=AccountUnit.minutes.value,
    )
    is_payroll_relevant: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "code", name="uq_accounts_tenant_code"),
    )


class ExportInterface(Base, TenantMixin, TimestampMixin):
    __tablename__ = "export_interfaces"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    interface_number: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    mandant_number: Mapped[Optional[str]] = mapped_column(sa.String(50))
    export_script: Mapped[Optional[str]] = mapped_column(sa.String(255))
    export_path: Mapped[Optional[str]] = mapped_column(sa.String(500))
    output_filename: Mapped[Optional[str]] = mapped_column(sa.String(255))
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    account_links: Mapped[list["ExportInterfaceAccount"]] = relationship(
        cascade="all, delete-orphan",
        order_by="ExportInterfaceAccount.sort_order",
        lazy="selectin",
    )

    __table_args__ = (
        sa.UniqueConstraint("tenant_id", "interface_number", name="uq_export_interfaces_tenant_number"),
    )

    @property
    def account_ids(self) -> list[uuid.UUID]:
        return [link.account_id for link in self.account_links]


class ExportInterfaceAccount(Base):
    __tablename__ = "export_interface_accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    export_interface_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("export_interfaces.id", ondelete="CASCADE"),
        nullable=False,
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
    )
    sort_order: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    __table_args__ = (
        sa.UniqueConstraint("export_interface_id", "account_id", name="uq_export_interface_accounts"),
    )
