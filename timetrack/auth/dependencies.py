"""Auth dependencies — JWT validation, RBAC enforcement, tenant resolution."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.models import User, UserSession
from timetrack.auth.service import hash_token
from timetrack.common.constants import PERMISSIONS, TENANT_HEADER, UserRole
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
)
from timetrack.config import settings
from timetrack.database import get_db
from timetrack.tenants.models import Tenant


def _extract_bearer(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


def has_permission(role: UserRole, permission: str) -> bool:
    return permission in PERMISSIONS.get(role, [])


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate JWT, verify the session, return the authenticated User."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > datetime.now(timezone.utc),
        ),
    )
    if result.scalars().first() is None:
        raise HTTPException(status_code=401, detail="Session invalid or expired.")

    user_result = await db.execute(
        select(User).where(
            User.id == uuid.UUID(payload["sub"]),
            User.is_active.is_(True),
        ),
    )
    user = user_result.scalars().first()
    if user is None:
        raise HTTPException(status_code=401, detail="User account is inactive or not found.")

    # The stored role wins over the token claim so demotions apply immediately
    request.state.user_role = user.user_role
    request.state.user = user
    return user


# ── Tenant-scoped request context ───────────────────────────────────

async def get_context(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """Resolve the effective tenant and build the RequestContext.

    ``X-Tenant-ID`` selects the tenant; without it the user's own tenant is
    used. Only ``system_admin`` may address another tenant.
    """
    tenant_id = user.tenant_id
    raw = request.headers.get(TENANT_HEADER)
    if raw:
        try:
            requested = uuid.UUID(raw)
        except ValueError:
            raise BadRequestException(f"{TENANT_HEADER} must be a UUID.")
        if requested != user.tenant_id:
            if user.user_role != UserRole.system_admin:
                raise ForbiddenException(detail="You may not access another tenant.")
            if await db.get(Tenant, requested) is None:
                raise NotFoundException("Tenant", requested)
        tenant_id = requested

    return RequestContext(
        tenant_id=tenant_id,
        user_id=user.id,
        role=user.user_role,
        employee_id=user.employee_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def require_context(permission: str) -> Callable:
    """Like ``get_context`` but first enforces *permission*."""

    async def _check(
        ctx: RequestContext = Depends(get_context),
    ) -> RequestContext:
        if not has_permission(ctx.role, permission):
            raise ForbiddenException(
                detail=f"Permission '{permission}' is not granted to role '{ctx.role.value}'.",
            )
        return ctx

    return _check


def check_employee_scope(
    ctx: RequestContext,
    employee_id: uuid.UUID,
    *,
    own_permission: str,
    all_permission: str,
) -> None:
    """Allow access to *employee_id* data with the all-permission, or to own data only."""
    if has_permission(ctx.role, all_permission):
        return
    if has_permission(ctx.role, own_permission) and ctx.employee_id == employee_id:
        return
    raise ForbiddenException(detail="You can only access your own records.")
