"""Reusable business-rule checks shared by the service layer."""

from __future__ import annotations

import uuid
from typing import Any, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from timetrack.common.constants import MIN_REASON_LENGTH
from timetrack.common.exceptions import ConflictError, InUseError, ValidationException

IMMUTABLE_MESSAGE = "cannot be changed after creation"


def ensure_immutable(entity: Any, updates: dict[str, Any], fields: Iterable[str]) -> None:
    """Reject updates that change identity fields.

    A field may be resent on update only with its current value.
    """
    errors: dict[str, list[str]] = {}
    for name in fields:
        if name in updates and updates[name] is not None and updates[name] != getattr(entity, name):
            errors[name] = [IMMUTABLE_MESSAGE]
    if errors:
        raise ValidationException(errors)
    for name in fields:
        updates.pop(name, None)


def require_reason(reason: Optional[str], field: str = "reason") -> str:
    text = (reason or "").strip()
    if len(text) < MIN_REASON_LENGTH:
        raise ValidationException(
            {field: [f"must be at least {MIN_REASON_LENGTH} characters"]},
        )
    return text


async def ensure_unique(
    db: AsyncSession,
    model: Any,
    field: str,
    value: Any,
    *,
    tenant_id: Optional[uuid.UUID] = None,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    """Raise ConflictError when *value* is already taken (within the tenant)."""
    if value is None:
        return
    column = getattr(model, field)
    query = select(func.count()).select_from(model).where(column == value)
    if tenant_id is not None:
        query = query.where(model.tenant_id == tenant_id)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    if (await db.execute(query)).scalar_one():
        raise ConflictError(field, value)


async def ensure_not_referenced(
    db: AsyncSession,
    entity_type: str,
    references: Iterable[tuple[InstrumentedAttribute, Any, str]],
) -> None:
    """Raise InUseError for the first ``(column, value, label)`` with matching rows."""
    for column, value, label in references:
        query = select(func.count()).select_from(column.class_).where(column == value)
        if (await db.execute(query)).scalar_one():
            raise InUseError(entity_type, label)
