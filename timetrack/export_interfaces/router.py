"""Account and export interface router.

Routes:
    /accounts                                   — Account CRUD
    /export-interfaces                          — Interface CRUD
    /export-interfaces/{id}/accounts            — Get / replace ordered mapping
    /export-interfaces/{id}/accounts/move       — Move selected accounts up/down
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timetrack.auth.dependencies import get_context, require_context
from timetrack.common.context import RequestContext
from timetrack.common.pagination import PaginationParams
from timetrack.database import get_db
from timetrack.export_interfaces.schemas import (
    AccountCreate,
    AccountMappingResponse,
    AccountMappingUpdate,
    AccountMoveRequest,
    AccountResponse,
    AccountUpdate,
    ExportInterfaceCreate,
    ExportInterfaceResponse,
    ExportInterfaceUpdate,
)
from timetrack.export_interfaces.service import AccountService, ExportInterfaceService

accounts_router = APIRouter(prefix="", tags=["accounts"])
export_interfaces_router = APIRouter(prefix="", tags=["export-interfaces"])


def _mapping_response(interface, accounts) -> AccountMappingResponse:
    return AccountMappingResponse(
        export_interface_id=interface.id,
        account_ids=[a.id for a in accounts],
        accounts=[AccountResponse.model_validate(a) for a in accounts],
    )


# ═════════════════════════════════════════════════════════════════════
# Accounts
# ═════════════════════════════════════════════════════════════════════


@accounts_router.get("")
async def list_accounts(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by code or name"),
    account_type: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    result = await AccountService.list_accounts(
        db, ctx, pagination, search=search, account_type=account_type, is_active=is_active,
    )
    return result.model_dump(mode="json")


@accounts_router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_context),
):
    return await AccountService.get_account(db, ctx, account_id)


@accounts_router.post("", status_code=201, response_model=AccountResponse)
async def create_account(
    body: AccountCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    return await AccountService.create_account(db, ctx, body)


@accounts_router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: uuid.UUID,
    body: AccountUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    return await AccountService.update_account(db, ctx, account_id, body)


@accounts_router.delete("/{account_id}", status_code=204)
async def delete_account(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    await AccountService.delete_account(db, ctx, account_id)


# ═════════════════════════════════════════════════════════════════════
# Export interfaces
# ═════════════════════════════════════════════════════════════════════


@export_interfaces_router.get("")
async def list_export_interfaces(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    result = await ExportInterfaceService.list_interfaces(
        db, ctx, pagination, search=search, is_active=is_active,
    )
    return result.model_dump(mode="json")


@export_interfaces_router.get("/{interface_id}", response_model=ExportInterfaceResponse)
async def get_export_interface(
    interface_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    return await ExportInterfaceService.get_interface(db, ctx, interface_id)


@export_interfaces_router.post("", status_code=201, response_model=ExportInterfaceResponse)
async def create_export_interface(
    body: ExportInterfaceCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    return await ExportInterfaceService.create_interface(db, ctx, body)


@export_interfaces_router.patch("/{interface_id}", response_model=ExportInterfaceResponse)
async def update_export_interface(
    interface_id: uuid.UUID,
    body: ExportInterfaceUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    return await ExportInterfaceService.update_interface(db, ctx, interface_id, body)


@export_interfaces_router.delete("/{interface_id}", status_code=204)
async def delete_export_interface(
    interface_id: uuid.UUID,
    force: bool = Query(False, description="Delete even when accounts are mapped"),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    await ExportInterfaceService.delete_interface(db, ctx, interface_id, force=force)


# ── Account mapping ─────────────────────────────────────────────────

@export_interfaces_router.get("/{interface_id}/accounts", response_model=AccountMappingResponse)
async def get_interface_accounts(
    interface_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    interface, accounts = await ExportInterfaceService.get_accounts(db, ctx, interface_id)
    return _mapping_response(interface, accounts)


@export_interfaces_router.put("/{interface_id}/accounts", response_model=AccountMappingResponse)
async def set_interface_accounts(
    interface_id: uuid.UUID,
    body: AccountMappingUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    interface, accounts = await ExportInterfaceService.set_accounts(
        db, ctx, interface_id, body.account_ids,
    )
    return _mapping_response(interface, accounts)


@export_interfaces_router.post("/{interface_id}/accounts/move", response_model=AccountMappingResponse)
async def move_interface_accounts(
    interface_id: uuid.UUID,
    body: AccountMoveRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_context("export_interfaces:manage")),
):
    interface, accounts = await ExportInterfaceService.move_accounts(
        db, ctx, interface_id, body.selected, body.direction,
    )
    return _mapping_response(interface, accounts)
