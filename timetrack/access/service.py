"""Access control service — zones, profiles and employee assignments."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.access.models import (
    AccessProfile,
    AccessProfileZone,
    AccessZone,
    EmployeeAccessAssignment,
)
from timetrack.access.schemas import (
    AccessAssignmentCreate,
    AccessAssignmentResponse,
    AccessAssignmentUpdate,
    AccessProfileCreate,
    AccessProfileResponse,
    AccessProfileUpdate,
    AccessZoneCreate,
    AccessZoneResponse,
    AccessZoneUpdate,
)
from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException, ValidationException
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.validators import ensure_immutable, ensure_not_referenced, ensure_unique
from timetrack.employees.models import Employee

_ZONE_AUDIT_FIELDS = ["code", "name", "description", "is_active"]
_PROFILE_AUDIT_FIELDS = ["code", "name", "description", "is_active", "zone_ids"]
_ASSIGNMENT_AUDIT_FIELDS = ["employee_id", "profile_id", "valid_from", "valid_to"]


async def _check_zones(db: AsyncSession, tenant_id: uuid.UUID, zone_ids: list[uuid.UUID]) -> None:
    if len(set(zone_ids)) != len(zone_ids):
        raise ValidationException({"zone_ids": ["must not contain duplicates"]})
    if not zone_ids:
        return
    result = await db.execute(
        select(AccessZone.id).where(AccessZone.tenant_id == tenant_id, AccessZone.id.in_(zone_ids)),
    )
    unknown = set(zone_ids) - set(result.scalars().all())
    if unknown:
        raise ValidationException(
            {"zone_ids": [f"unknown zone '{zid}'" for zid in zone_ids if zid in unknown]},
        )


def _set_zones(profile: AccessProfile, zone_ids: list[uuid.UUID]) -> None:
    links = {link.zone_id: link for link in profile.zone_links}
    profile.zone_links = [links.get(zid) or AccessProfileZone(zone_id=zid) for zid in zone_ids]


# ═════════════════════════════════════════════════════════════════════
# Zones
# ═════════════════════════════════════════════════════════════════════


class AccessZoneService:

    @staticmethod
    async def list_zones(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(AccessZone).where(AccessZone.tenant_id == ctx.tenant_id).order_by(AccessZone.code)
        query = apply_filters(query, AccessZone, {"is_active": is_active})
        query = apply_search(query, AccessZone, search, ["code", "name"])
        return await paginate(db, query, pagination, model=AccessZone, schema=AccessZoneResponse)

    @staticmethod
    async def get_zone(db: AsyncSession, ctx: RequestContext, zone_id: uuid.UUID) -> AccessZone:
        zone = await db.get(AccessZone, zone_id)
        if zone is None or zone.tenant_id != ctx.tenant_id:
            raise NotFoundException("AccessZone", zone_id)
        return zone

    @staticmethod
    async def create_zone(db: AsyncSession, ctx: RequestContext, data: AccessZoneCreate) -> AccessZone:
        await ensure_unique(db, AccessZone, "code", data.code, tenant_id=ctx.tenant_id)
        zone = AccessZone(tenant_id=ctx.tenant_id, **data.model_dump())
        db.add(zone)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="access_zone",
            entity_id=zone.id,
            entity_name=zone.name,
            new_values=snapshot(zone, _ZONE_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return zone

    @staticmethod
    async def update_zone(
        db: AsyncSession,
        ctx: RequestContext,
        zone_id: uuid.UUID,
        data: AccessZoneUpdate,
    ) -> AccessZone:
        zone = await AccessZoneService.get_zone(db, ctx, zone_id)
        updates = data.model_dump(exclude_unset=True)
        ensure_immutable(zone, updates, ["code"])
        updates = {k: v for k, v in updates.items() if v is not None or k == "description"}

        old_values = snapshot(zone, _ZONE_AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(zone, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="access_zone",
            entity_id=zone.id,
            entity_name=zone.name,
            old_values=old_values,
            new_values=snapshot(zone, _ZONE_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return zone

    @staticmethod
    async def delete_zone(db: AsyncSession, ctx: RequestContext, zone_id: uuid.UUID) -> None:
        zone = await AccessZoneService.get_zone(db, ctx, zone_id)
        await ensure_not_referenced(
            db, "AccessZone", [(AccessProfileZone.zone_id, zone.id, "access profiles")],
        )
        old_values = snapshot(zone, _ZONE_AUDIT_FIELDS)
        await db.delete(zone)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="access_zone",
            entity_id=zone_id,
            entity_name=zone.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )


# ═════════════════════════════════════════════════════════════════════
# Profiles
# ═════════════════════════════════════════════════════════════════════


class AccessProfileService:

    @staticmethod
    async def list_profiles(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = (
            select(AccessProfile)
            .where(AccessProfile.tenant_id == ctx.tenant_id)
            .order_by(AccessProfile.code)
        )
        query = apply_filters(query, AccessProfile, {"is_active": is_active})
        query = apply_search(query, AccessProfile, search, ["code", "name"])
        return await paginate(db, query, pagination, model=AccessProfile, schema=AccessProfileResponse)

    @staticmethod
    async def get_profile(db: AsyncSession, ctx: RequestContext, profile_id: uuid.UUID) -> AccessProfile:
        profile = await db.get(AccessProfile, profile_id)
        if profile is None or profile.tenant_id != ctx.tenant_id:
            raise NotFoundException("AccessProfile", profile_id)
        return profile

    @staticmethod
    async def create_profile(
        db: AsyncSession,
        ctx: RequestContext,
        data: AccessProfileCreate,
    ) -> AccessProfile:
        await ensure_unique(db, AccessProfile, "code", data.code, tenant_id=ctx.tenant_id)
        await _check_zones(db, ctx.tenant_id, data.zone_ids)
        profile = AccessProfile(
            tenant_id=ctx.tenant_id,
            zone_links=[AccessProfileZone(zone_id=zid) for zid in data.zone_ids],
            **data.model_dump(exclude={"zone_ids"}),
        )
        db.add(profile)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="access_profile",
            entity_id=profile.id,
            entity_name=profile.name,
            new_values=snapshot(profile, _PROFILE_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return profile

    @staticmethod
    async def update_profile(
        db: AsyncSession,
        ctx: RequestContext,
        profile_id: uuid.UUID,
        data: AccessProfileUpdate,
    ) -> AccessProfile:
        profile = await AccessProfileService.get_profile(db, ctx, profile_id)
        updates = data.model_dump(exclude_unset=True, exclude={"zone_ids"})
        ensure_immutable(profile, updates, ["code"])
        updates = {k: v for k, v in updates.items() if v is not None or k == "description"}
        if data.zone_ids is not None:
            await _check_zones(db, ctx.tenant_id, data.zone_ids)

        old_values = snapshot(profile, _PROFILE_AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(profile, field, value)
        if data.zone_ids is not None:
            _set_zones(profile, data.zone_ids)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="access_profile",
            entity_id=profile.id,
            entity_name=profile.name,
            old_values=old_values,
            new_values=snapshot(profile, _PROFILE_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return profile

    @staticmethod
    async def delete_profile(db: AsyncSession, ctx: RequestContext, profile_id: uuid.UUID) -> None:
        profile = await AccessProfileService.get_profile(db, ctx, profile_id)
        await ensure_not_referenced(
            db,
            "AccessProfile",
            [(EmployeeAccessAssignment.profile_id, profile.id, "employee access assignments")],
        )
        old_values = snapshot(profile, _PROFILE_AUDIT_FIELDS)
        await db.delete(profile)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="access_profile",
            entity_id=profile_id,
            entity_name=profile.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )


# ═════════════════════════════════════════════════════════════════════
# Employee assignments
# ═════════════════════════════════════════════════════════════════════


class AccessAssignmentService:

    @staticmethod
    async def list_assignments(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        profile_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        query = (
            select(EmployeeAccessAssignment)
            .where(EmployeeAccessAssignment.tenant_id == ctx.tenant_id)
            .order_by(EmployeeAccessAssignment.created_at)
        )
        query = apply_filters(
            query, EmployeeAccessAssignment, {"employee_id": employee_id, "profile_id": profile_id},
        )
        return await paginate(
            db, query, pagination, model=EmployeeAccessAssignment, schema=AccessAssignmentResponse,
        )

    @staticmethod
    async def get_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        assignment_id: uuid.UUID,
    ) -> EmployeeAccessAssignment:
        assignment = await db.get(EmployeeAccessAssignment, assignment_id)
        if assignment is None or assignment.tenant_id != ctx.tenant_id:
            raise NotFoundException("EmployeeAccessAssignment", assignment_id)
        return assignment

    @staticmethod
    async def create_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        data: AccessAssignmentCreate,
    ) -> EmployeeAccessAssignment:
        employee = await db.get(Employee, data.employee_id)
        if employee is None or employee.tenant_id != ctx.tenant_id:
            raise ValidationException({"employee_id": ["unknown employee"]})
        await AccessProfileService.get_profile(db, ctx, data.profile_id)

        assignment = EmployeeAccessAssignment(tenant_id=ctx.tenant_id, **data.model_dump())
        db.add(assignment)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="access_assignment",
            entity_id=assignment.id,
            entity_name=employee.full_name,
            new_values=snapshot(assignment, _ASSIGNMENT_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return assignment

    @staticmethod
    async def update_assignment(
        db: AsyncSession,
        ctx: RequestContext,
        assignment_id: uuid.UUID,
        data: AccessAssignmentUpdate,
    ) -> EmployeeAccessAssignment:
        assignment = await AccessAssignmentService.get_assignment(db, ctx, assignment_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("profile_id") is not None:
            await AccessProfileService.get_profile(db, ctx, updates["profile_id"])
        elif "profile_id" in updates:
            updates.pop("profile_id")
        valid_from = updates.get("valid_from", assignment.valid_from)
        valid_to = updates.get("valid_to", assignment.valid_to)
        if valid_from and valid_to and valid_to < valid_from:
            raise ValidationException({"valid_to": ["must not be before valid_from"]})

        old_values = snapshot(assignment, _ASSIGNMENT_AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(assignment, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="access_assignment",
            entity_id=assignment.id,
            old_values=old_values,
            new_values=snapshot(assignment, _ASSIGNMENT_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return assignment

    @staticmethod
    async def delete_assignment(db: AsyncSession, ctx: RequestContext, assignment_id: uuid.UUID) -> None:
        assignment = await AccessAssignmentService.get_assignment(db, ctx, assignment_id)
        old_values = snapshot(assignment, _ASSIGNMENT_AUDIT_FIELDS)
        await db.delete(assignment)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="access_assignment",
            entity_id=assignment_id,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )
