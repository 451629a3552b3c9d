"""Auth router — password and dev login, token refresh, logout, profile; user admin."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import get_current_user, require_context
from timetrack.auth.models import User
from timetrack.auth.schemas import (
    LoginRequest,
    MeResponse,
    PermissionsResponse,
    RefreshRequest,
    RefreshResponse,
    TokenResponse,
    UserCreate,
    UserInfo,
    UserResponse,
    UserUpdate,
)
from timetrack.auth.service import (
    UserService,
    authenticate,
    create_session,
    get_or_create_dev_user,
    hash_token,
    refresh_access_token,
    revoke_session,
)
from timetrack.common.audit import create_audit_entry
from timetrack.common.constants import PERMISSIONS, UserRole
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.common.rate_limit import limiter
from timetrack.config import settings
from timetrack.database import get_db

router = APIRouter(prefix="", tags=["auth"])
users_router = APIRouter(prefix="", tags=["users"])


def _client(request: Request) -> tuple[Optional[str], Optional[str]]:
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


async def _issue_tokens(db: AsyncSession, user: User, request: Request) -> TokenResponse:
    ip, user_agent = _client(request)
    access_token, refresh_token, expires_in = await create_session(db, user, ip, user_agent)

    await create_audit_entry(
        db,
        action="login",
        entity_type="user_session",
        entity_id=user.id,
        entity_name=user.email,
        tenant_id=user.tenant_id,
        user_id=user.id,
        new_values={"ip": ip, "user_agent": user_agent},
        ip_address=ip,
        user_agent=user_agent,
    )

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=expires_in,
        user=UserInfo.model_validate(user),
    )


# ── POST /login — Email + password ──────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.email, body.password)
    return await _issue_tokens(db, user, request)


# ── POST /dev/login — Seeded user per role (non-production only) ───

@router.post("/dev/login", response_model=TokenResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def dev_login(
    request: Request,
    role: UserRole = Query(UserRole.admin),
    db: AsyncSession = Depends(get_db),
):
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not Found")
    user = await get_or_create_dev_user(db, role)
    return await _issue_tokens(db, user, request)


# ── POST /refresh — Rotate token pair ───────────────────────────────

@router.post("/refresh", response_model=RefreshResponse)
async def refresh_token(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    access_token, new_refresh, expires_in = await refresh_access_token(db, body.refresh_token)
    return RefreshResponse(
        access_token=access_token,
        refresh_token=new_refresh,
        expires_in=expires_in,
    )


# ── POST /logout — Revoke current session ──────────────────────────

@router.post("/logout")
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = request.headers.get("Authorization", "").removeprefix("Bearer ")
    await revoke_session(db, hash_token(token))

    ip, user_agent = _client(request)
    await create_audit_entry(
        db,
        action="logout",
        entity_type="user_session",
        entity_id=user.id,
        entity_name=user.email,
        tenant_id=user.tenant_id,
        user_id=user.id,
        ip_address=ip,
        user_agent=user_agent,
    )

    return {"message": "Logged out successfully"}


# ── GET /me — Current user ─────────────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    request: Request,
    user: User = Depends(get_current_user),
):
    role: UserRole = request.state.user_role
    return MeResponse(
        id=user.id,
        tenant_id=user.tenant_id,
        email=user.email,
        display_name=user.display_name,
        role=role.value,
        employee_id=user.employee_id,
        permissions=PERMISSIONS.get(role, []),
        last_login_at=user.last_login_at,
    )


@router.get("/permissions", response_model=PermissionsResponse)
async def permissions(
    request: Request,
    user: User = Depends(get_current_user),
):
    role: UserRole = request.state.user_role
    return PermissionsResponse(role=role.value, permissions=PERMISSIONS.get(role, []))


# ═════════════════════════════════════════════════════════════════════
# Users
# ═════════════════════════════════════════════════════════════════════


@users_router.get("")
async def list_users(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("users:manage")),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by email or name"),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    result = await UserService.list_users(
        db,
        ctx,
        pagination,
        search=search,
        role=role.value if role else None,
        is_active=is_active,
    )
    return result.model_dump(mode="json")


@users_router.post("", status_code=201, response_model=UserResponse)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("users:manage")),
):
    return await UserService.create_user(db, ctx, body)


@users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("users:manage")),
):
    return await UserService.get_user(db, ctx, user_id)


@users_router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("users:manage")),
):
    return await UserService.update_user(db, ctx, user_id, body)


@users_router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("users:manage")),
):
    await UserService.delete_user(db, ctx, user_id)
