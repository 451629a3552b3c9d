"""Tenant service — mandant administration."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.models import User
from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.constants import UserRole
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import ForbiddenException, NotFoundException
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.validators import ensure_immutable, ensure_not_referenced, ensure_unique
from timetrack.employees.models import Employee
from timetrack.tenants.models import Tenant
from timetrack.tenants.schemas import TenantCreate, TenantResponse, TenantUpdate

_AUDIT_FIELDS = ["name", "slug", "is_active", "settings"]


class TenantService:

    @staticmethod
    async def list_tenants(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(Tenant).order_by(Tenant.name)
        # Everyone but system admins sees only their own tenant
        if ctx.role != UserRole.system_admin:
            query = query.where(Tenant.id == ctx.tenant_id)
        query = apply_filters(query, Tenant, {"is_active": is_active})
        query = apply_search(query, Tenant, search, ["name", "slug"])
        return await paginate(db, query, pagination, model=Tenant, schema=TenantResponse)

    @staticmethod
    async def get_tenant(db: AsyncSession, ctx: RequestContext, tenant_id: uuid.UUID) -> Tenant:
        tenant = await db.get(Tenant, tenant_id)
        if tenant is None or (ctx.role != UserRole.system_admin and tenant.id != ctx.tenant_id):
            raise NotFoundException("Tenant", tenant_id)
        return tenant

    @staticmethod
    async def create_tenant(db: AsyncSession, ctx: RequestContext, data: TenantCreate) -> Tenant:
        await ensure_unique(db, Tenant, "slug", data.slug)
        tenant = Tenant(**data.model_dump())
        db.add(tenant)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="tenant",
            entity_id=tenant.id,
            entity_name=tenant.name,
            new_values=snapshot(tenant, _AUDIT_FIELDS),
            tenant_id=tenant.id,
            user_id=ctx.user_id,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )
        return tenant

    @staticmethod
    async def update_tenant(
        db: AsyncSession,
        ctx: RequestContext,
        tenant_id: uuid.UUID,
        data: TenantUpdate,
    ) -> Tenant:
        tenant = await TenantService.get_tenant(db, ctx, tenant_id)
        updates = data.model_dump(exclude_unset=True)
        ensure_immutable(tenant, updates, ["slug"])
        if "is_active" in updates and ctx.role != UserRole.system_admin:
            raise ForbiddenException(detail="Only system administrators can (de)activate tenants.")

        old_values = snapshot(tenant, _AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(tenant, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="tenant",
            entity_id=tenant.id,
            entity_name=tenant.name,
            old_values=old_values,
            new_values=snapshot(tenant, _AUDIT_FIELDS),
            tenant_id=tenant.id,
            user_id=ctx.user_id,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )
        return tenant

    @staticmethod
    async def delete_tenant(db: AsyncSession, ctx: RequestContext, tenant_id: uuid.UUID) -> None:
        tenant = await TenantService.get_tenant(db, ctx, tenant_id)
        await ensure_not_referenced(
            db,
            "Tenant",
            [
                (Employee.tenant_id, tenant.id, "employees"),
                (User.tenant_id, tenant.id, "users"),
            ],
        )
        old_values = snapshot(tenant, _AUDIT_FIELDS)
        await db.delete(tenant)
        await db.flush()

        # Recorded under the caller's tenant, the deleted one has no log left
        await create_audit_entry(
            db,
            action="delete",
            entity_type="tenant",
            entity_id=tenant_id,
            entity_name=tenant.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )
