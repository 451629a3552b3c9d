"""Account and export interface Pydantic schemas."""


import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from timetrack.common.constants import AccountType, AccountUnit


# ═════════════════════════════════════════════════════════════════════
# Accounts
# ═════════════════════════════════════════════════════════════════════


class AccountCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    account_type: AccountType = AccountType.day
    unit: AccountUnit = AccountUnit.minutes
    is_payroll_relevant: bool = True
    is_active: bool = True


class AccountUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    code: Optional[str] = Field(None, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    account_type: Optional[AccountType] = None
    unit: Optional[AccountUnit] = None
    is_payroll_relevant: Optional[bool] = None
    is_active: Optional[bool] = None


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    account_type: str
    unit: str
    is_payroll_relevant: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Export interfaces
# ═════════════════════════════════════════════════════════════════════


class ExportInterfaceCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    interface_number: int = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=255)
    mandant_number: Optional[str] = Field(None, max_length=50)
    export_script: Optional[str] = Field(None, max_length=255)
    export_path: Optional[str] = Field(None, max_length=500)
    output_filename: Optional[str] = Field(None, max_length=255)
    is_active: bool = True


class ExportInterfaceUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    interface_number: Optional[int] = Field(None, gt=0)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    mandant_number: Optional[str] = Field(None, max_length=50)
    export_script: Optional[str] = Field(None, max_length=255)
    export_path: Optional[str] = Field(None, max_length=500)
    output_filename: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None


class ExportInterfaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    interface_number: int
    name: str
    mandant_number: Optional[str] = None
    export_script: Optional[str] = None
    export_path: Optional[str] = None
    output_filename: Optional[str] = None
    is_active: bool
    account_ids: list[uuid.UUID] = []
    created_at: datetime
    updated_at: datetime


# ── Account mapping ─────────────────────────────────────────────────

class AccountMappingUpdate(BaseModel):
    """Complete ordered list of assigned account ids."""

    account_ids: list[uuid.UUID]


class AccountMoveRequest(BaseModel):
    selected: list[uuid.UUID] = Field(..., min_length=1)
    direction: Literal["up", "down"]


class AccountMappingResponse(BaseModel):
    export_interface_id: uuid.UUID
    account_ids: list[uuid.UUID]
    accounts: list[AccountResponse]
