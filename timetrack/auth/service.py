"""Auth service — password login, JWT management, session lifecycle."""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.models import User, UserSession
from timetrack.auth.schemas import UserCreate, UserResponse, UserUpdate
from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.constants import UserRole
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
)
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.validators import ensure_unique
from timetrack.config import settings
from timetrack.tenants.models import Tenant

logger = logging.getLogger(__name__)

DEV_TENANT_SLUG = "dev"


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _create_access_token(user: User) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user.id),
        "tenant_id": str(user.tenant_id),
        "role": user.user_role.value,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


def _create_refresh_token(user: User) -> str:
    payload = {
        "sub": str(user.id),
        "type": "refresh",
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


# ── Login ───────────────────────────────────────────────────────────

async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Return the active user matching the credentials, or raise 403."""
    result = await db.execute(
        select(User).where(User.email == email.strip().lower()),
    )
    user = result.scalars().first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise ForbiddenException(detail="Invalid email or password.")
    return user


async def get_or_create_dev_user(db: AsyncSession, role: UserRole) -> User:
    """Return the seeded development user for *role*, creating tenant and user on first use."""
    result = await db.execute(select(Tenant).where(Tenant.slug == DEV_TENANT_SLUG))
    tenant = result.scalars().first()
    if tenant is None:
        tenant = Tenant(name="Development", slug=DEV_TENANT_SLUG, is_active=True, settings={})
        db.add(tenant)
        await db.flush()

    email = f"{role.value}@dev.local"
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if user is None:
        user = User(
            tenant_id=tenant.id,
            email=email,
            display_name=f"Dev {role.value.replace('_', ' ').title()}",
            password_hash=hash_password(settings.DEV_LOGIN_PASSWORD),
            role=role.value,
            is_active=True,
        )
        db.add(user)
        await db.flush()
        logger.info("Created development user %s", email)
    return user


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str],
    user_agent: Optional[str],
) -> tuple[str, str, int]:
    """Create a JWT pair and persist the session. Returns (access, refresh, expires_in)."""
    access_token, expires_in = _create_access_token(user)
    refresh_token = _create_refresh_token(user)

    session = UserSession(
        user_id=user.id,
        token_hash=hash_token(access_token),
        refresh_token_hash=hash_token(refresh_token),
        ip_address=ip,
        user_agent=user_agent,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    )
    db.add(session)
    user.last_login_at = datetime.now(timezone.utc)
    await db.flush()

    return access_token, refresh_token, expires_in


# ── Refresh (with token rotation + reuse detection) ─────────────────

async def refresh_access_token(
    db: AsyncSession,
    refresh_token_str: str,
) -> tuple[str, str, int]:
    """Validate a refresh token, rotate it, and issue a new token pair.

    Each refresh token can be used once. Presenting an already consumed
    token revokes every session of that user.
    """
    try:
        payload = jwt.decode(
            refresh_token_str,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        raise ForbiddenException(detail="Invalid or expired refresh token.")

    if payload.get("type") != "refresh":
        raise ForbiddenException(detail="Invalid token type.")

    result = await db.execute(
        select(UserSession).where(
            UserSession.refresh_token_hash == hash_token(refresh_token_str),
        ),
    )
    session = result.scalars().first()
    if session is None:
        raise ForbiddenException(detail="Invalid refresh token.")

    if session.is_revoked:
        await _revoke_all_user_sessions(db, session.user_id)
        # Persist revocations before raising; get_db would roll them back
        await db.commit()
        logger.warning("Refresh token reuse detected for user %s", session.user_id)
        raise ForbiddenException(
            detail="Refresh token reuse detected. All sessions revoked for security.",
        )

    session.is_revoked = True
    await db.flush()

    user = await _get_active_user(db, uuid.UUID(payload["sub"]))
    access_token, expires_in = _create_access_token(user)
    new_refresh_token = _create_refresh_token(user)

    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(access_token),
            refresh_token_hash=hash_token(new_refresh_token),
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
        ),
    )
    await db.flush()

    return access_token, new_refresh_token, expires_in


# ── Revoke ──────────────────────────────────────────────────────────

async def _revoke_all_user_sessions(db: AsyncSession, user_id: uuid.UUID) -> None:
    result = await db.execute(
        select(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.is_revoked.is_(False),
        ),
    )
    for session in result.scalars().all():
        session.is_revoked = True
    await db.flush()


async def revoke_session(db: AsyncSession, token_hash: str) -> None:
    """Mark a session as revoked by its access token hash."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == token_hash),
    )
    session = result.scalars().first()
    if session:
        session.is_revoked = True
        await db.flush()


# ── Internal helpers ────────────────────────────────────────────────

async def _get_active_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active.is_(True)),
    )
    user = result.scalars().first()
    if user is None:
        raise NotFoundException("User", user_id)
    return user


# ═════════════════════════════════════════════════════════════════════
# UserService: tenant user administration
# ═════════════════════════════════════════════════════════════════════


class UserService:
    """Async CRUD for users of the current tenant."""

    @staticmethod
    async def list_users(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(User).where(User.tenant_id == ctx.tenant_id).order_by(User.email)
        query = apply_filters(query, User, {"role": role, "is_active": is_active})
        if search:
            query = apply_search(query, User, search, ["email", "display_name"])
        return await paginate(db, query, pagination, model=User, schema=UserResponse)

    @staticmethod
    async def get_user(db: AsyncSession, ctx: RequestContext, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None or user.tenant_id != ctx.tenant_id:
            raise NotFoundException("User", user_id)
        return user

    @staticmethod
    async def create_user(db: AsyncSession, ctx: RequestContext, data: UserCreate) -> User:
        email = data.email.lower()
        await ensure_unique(db, User, "email", email)
        if data.role == UserRole.system_admin and ctx.role != UserRole.system_admin:
            raise ForbiddenException(detail="Only system administrators can grant system_admin.")

        user = User(
            tenant_id=ctx.tenant_id,
            email=email,
            display_name=data.display_name,
            password_hash=hash_password(data.password),
            role=data.role.value,
            employee_id=data.employee_id,
            is_active=True,
        )
        db.add(user)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="user",
            entity_id=user.id,
            entity_name=user.email,
            new_values=snapshot(user, _USER_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return user

    @staticmethod
    async def update_user(
        db: AsyncSession,
        ctx: RequestContext,
        user_id: uuid.UUID,
        data: UserUpdate,
    ) -> User:
        user = await UserService.get_user(db, ctx, user_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("role") == UserRole.system_admin and ctx.role != UserRole.system_admin:
            raise ForbiddenException(detail="Only system administrators can grant system_admin.")

        old_values = snapshot(user, _USER_AUDIT_FIELDS)
        password = updates.pop("password", None)
        if password:
            user.password_hash = hash_password(password)
        if "role" in updates and updates["role"] is not None:
            updates["role"] = UserRole(updates["role"]).value
        for field, value in updates.items():
            setattr(user, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="user",
            entity_id=user.id,
            entity_name=user.email,
            old_values=old_values,
            new_values=snapshot(user, _USER_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, ctx: RequestContext, user_id: uuid.UUID) -> None:
        user = await UserService.get_user(db, ctx, user_id)
        if user.id == ctx.user_id:
            raise BadRequestException("You cannot delete your own account.")
        old_values = snapshot(user, _USER_AUDIT_FIELDS)
        await db.delete(user)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="user",
            entity_id=user_id,
            entity_name=old_values["email"],
            old_values=old_values,
            **ctx.audit_kwargs(),
        )


_USER_AUDIT_FIELDS = ["email", "display_name", "role", "employee_id", "is_active"]
