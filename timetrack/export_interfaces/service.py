"""Account and export interface service, including the account mapping."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.common.audit import create_audit_entry, snapshot
from timetrack.common.context import RequestContext
from timetrack.common.exceptions import NotFoundException, ValidationException
from timetrack.common.filters import apply_filters, apply_search
from timetrack.common.pagination import PaginatedResponse, PaginationParams, paginate
from timetrack.common.validators import ensure_immutable, ensure_not_referenced, ensure_unique
from timetrack.export_interfaces import mapping
from timetrack.export_interfaces.models import Account, ExportInterface, ExportInterfaceAccount
from timetrack.export_interfaces.schemas import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    ExportInterfaceCreate,
    ExportInterfaceResponse,
    ExportInterfaceUpdate,
)

_ACCOUNT_AUDIT_FIELDS = ["code", "name", "account_type", "unit", "is_payroll_relevant", "is_active"]
_INTERFACE_AUDIT_FIELDS = [
    "interface_number", "name", "mandant_number", "export_script",
    "export_path", "output_filename", "is_active",
]


# ═════════════════════════════════════════════════════════════════════
# AccountService
# ═════════════════════════════════════════════════════════════════════


class AccountService:

    @staticmethod
    async def list_accounts(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        account_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(Account).where(Account.tenant_id == ctx.tenant_id).order_by(Account.code)
        query = apply_filters(query, Account, {"account_type": account_type, "is_active": is_active})
        query = apply_search(query, Account, search, ["code", "name"])
        return await paginate(db, query, pagination, model=Account, schema=AccountResponse)

    @staticmethod
    async def get_account(db: AsyncSession, ctx: RequestContext, account_id: uuid.UUID) -> Account:
        account = await db.get(Account, account_id)
        if account is None or account.tenant_id != ctx.tenant_id:
            raise NotFoundException("Account", account_id)
        return account

    @staticmethod
    async def create_account(db: AsyncSession, ctx: RequestContext, data: AccountCreate) -> Account:
        await ensure_unique(db, Account, "code", data.code, tenant_id=ctx.tenant_id)
        account = Account(tenant_id=ctx.tenant_id, **data.model_dump())
        db.add(account)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="account",
            entity_id=account.id,
            entity_name=account.name,
            new_values=snapshot(account, _ACCOUNT_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return account

    @staticmethod
    async def update_account(
        db: AsyncSession,
        ctx: RequestContext,
        account_id: uuid.UUID,
        data: AccountUpdate,
    ) -> Account:
        account = await AccountService.get_account(db, ctx, account_id)
        updates = data.model_dump(exclude_unset=True)
        ensure_immutable(account, updates, ["code"])
        updates = {k: v for k, v in updates.items() if v is not None or k == "description"}

        old_values = snapshot(account, _ACCOUNT_AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(account, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="account",
            entity_id=account.id,
            entity_name=account.name,
            old_values=old_values,
            new_values=snapshot(account, _ACCOUNT_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return account

    @staticmethod
    async def delete_account(db: AsyncSession, ctx: RequestContext, account_id: uuid.UUID) -> None:
        account = await AccountService.get_account(db, ctx, account_id)
        await ensure_not_referenced(
            db,
            "Account",
            [(ExportInterfaceAccount.account_id, account.id, "export interfaces")],
        )
        old_values = snapshot(account, _ACCOUNT_AUDIT_FIELDS)
        await db.delete(account)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="account",
            entity_id=account_id,
            entity_name=account.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )


# ═════════════════════════════════════════════════════════════════════
# ExportInterfaceService
# ═════════════════════════════════════════════════════════════════════


class ExportInterfaceService:

    # ── CRUD ────────────────────────────────────────────────────────

    @staticmethod
    async def list_interfaces(
        db: AsyncSession,
        ctx: RequestContext,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = (
            select(ExportInterface)
            .where(ExportInterface.tenant_id == ctx.tenant_id)
            .order_by(ExportInterface.interface_number)
        )
        query = apply_filters(query, ExportInterface, {"is_active": is_active})
        query = apply_search(query, ExportInterface, search, ["name", "mandant_number"])
        return await paginate(
            db, query, pagination, model=ExportInterface, schema=ExportInterfaceResponse,
        )

    @staticmethod
    async def get_interface(
        db: AsyncSession,
        ctx: RequestContext,
        interface_id: uuid.UUID,
    ) -> ExportInterface:
        interface = await db.get(ExportInterface, interface_id)
        if interface is None or interface.tenant_id != ctx.tenant_id:
            raise NotFoundException("ExportInterface", interface_id)
        return interface

    @staticmethod
    async def create_interface(
        db: AsyncSession,
        ctx: RequestContext,
        data: ExportInterfaceCreate,
    ) -> ExportInterface:
        await ensure_unique(
            db, ExportInterface, "interface_number", data.interface_number, tenant_id=ctx.tenant_id,
        )
        interface = ExportInterface(tenant_id=ctx.tenant_id, account_links=[], **data.model_dump())
        db.add(interface)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="export_interface",
            entity_id=interface.id,
            entity_name=interface.name,
            new_values=snapshot(interface, _INTERFACE_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return interface

    @staticmethod
    async def update_interface(
        db: AsyncSession,
        ctx: RequestContext,
        interface_id: uuid.UUID,
        data: ExportInterfaceUpdate,
    ) -> ExportInterface:
        interface = await ExportInterfaceService.get_interface(db, ctx, interface_id)
        updates = data.model_dump(exclude_unset=True)
        updates = {
            k: v for k, v in updates.items()
            if v is not None or k not in ("interface_number", "name", "is_active")
        }
        if "interface_number" in updates:
            await ensure_unique(
                db, ExportInterface, "interface_number", updates["interface_number"],
                tenant_id=ctx.tenant_id, exclude_id=interface.id,
            )

        old_values = snapshot(interface, _INTERFACE_AUDIT_FIELDS)
        for field, value in updates.items():
            setattr(interface, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="export_interface",
            entity_id=interface.id,
            entity_name=interface.name,
            old_values=old_values,
            new_values=snapshot(interface, _INTERFACE_AUDIT_FIELDS),
            **ctx.audit_kwargs(),
        )
        return interface

    @staticmethod
    async def delete_interface(
        db: AsyncSession,
        ctx: RequestContext,
        interface_id: uuid.UUID,
        *,
        force: bool = False,
    ) -> None:
        """Delete an interface; mapped accounts block it unless *force*."""
        interface = await ExportInterfaceService.get_interface(db, ctx, interface_id)
        if interface.account_links and not force:
            await ensure_not_referenced(
                db,
                "ExportInterface",
                [(ExportInterfaceAccount.export_interface_id, interface.id, "mapped accounts")],
            )
        old_values = {
            **snapshot(interface, _INTERFACE_AUDIT_FIELDS),
            "account_ids": interface.account_ids,
        }
        await db.delete(interface)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="export_interface",
            entity_id=interface_id,
            entity_name=interface.name,
            old_values=old_values,
            **ctx.audit_kwargs(),
        )

    # ── Account mapping ─────────────────────────────────────────────

    @staticmethod
    async def get_accounts(
        db: AsyncSession,
        ctx: RequestContext,
        interface_id: uuid.UUID,
    ) -> tuple[ExportInterface, list[Account]]:
        interface = await ExportInterfaceService.get_interface(db, ctx, interface_id)
        return interface, await _accounts_in_order(db, interface.account_ids)

    @staticmethod
    async def set_accounts(
        db: AsyncSession,
        ctx: RequestContext,
        interface_id: uuid.UUID,
        account_ids: list[uuid.UUID],
    ) -> tuple[ExportInterface, list[Account]]:
        """Persist the complete ordered list of assigned accounts."""
        interface = await ExportInterfaceService.get_interface(db, ctx, interface_id)

        if len(set(account_ids)) != len(account_ids):
            raise ValidationException({"account_ids": ["must not contain duplicates"]})
        if account_ids:
            result = await db.execute(
                select(Account.id).where(
                    Account.tenant_id == ctx.tenant_id,
                    Account.id.in_(account_ids),
                ),
            )
            unknown = set(account_ids) - set(result.scalars().all())
            if unknown:
                raise ValidationException(
                    {"account_ids": [f"unknown account '{aid}'" for aid in account_ids if aid in unknown]},
                )

        old_ids = interface.account_ids
        await _apply_order(db, interface, account_ids)

        await create_audit_entry(
            db,
            action="update",
            entity_type="export_interface",
            entity_id=interface.id,
            entity_name=interface.name,
            old_values={"account_ids": old_ids},
            new_values={"account_ids": account_ids},
            **ctx.audit_kwargs(),
        )
        return interface, await _accounts_in_order(db, account_ids)

    @staticmethod
    async def move_accounts(
        db: AsyncSession,
        ctx: RequestContext,
        interface_id: uuid.UUID,
        selected: list[uuid.UUID],
        direction: str,
    ) -> tuple[ExportInterface, list[Account]]:
        interface = await ExportInterfaceService.get_interface(db, ctx, interface_id)
        current = interface.account_ids
        missing = [aid for aid in selected if aid not in current]
        if missing:
            raise ValidationException(
                {"selected": [f"account '{aid}' is not assigned" for aid in missing]},
            )
        mover = mapping.move_up if direction == "up" else mapping.move_down
        new_order = mover(current, selected)
        if new_order != current:
            await _apply_order(db, interface, new_order)
        return interface, await _accounts_in_order(db, new_order)


# ── Helpers ─────────────────────────────────────────────────────────

async def _apply_order(
    db: AsyncSession,
    interface: ExportInterface,
    account_ids: list[uuid.UUID],
) -> None:
    # Reuse existing links; (interface, account) is unique
    links = {link.account_id: link for link in interface.account_links}
    ordered: list[ExportInterfaceAccount] = []
    for position, account_id in enumerate(account_ids):
        link = links.get(account_id) or ExportInterfaceAccount(account_id=account_id)
        link.sort_order = position
        ordered.append(link)
    interface.account_links = ordered
    await db.flush()


async def _accounts_in_order(db: AsyncSession, account_ids: list[uuid.UUID]) -> list[Account]:
    if not account_ids:
        return []
    result = await db.execute(select(Account).where(Account.id.in_(account_ids)))
    by_id = {a.id: a for a in result.scalars().all()}
    return [by_id[aid] for aid in account_ids if aid in by_id]
