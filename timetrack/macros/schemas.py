"""Macro Pydantic schemas — macros, assignments, executions."""


import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from timetrack.common.constants import MacroActionType, MacroType


# ═════════════════════════════════════════════════════════════════════
# Assignments
# ═════════════════════════════════════════════════════════════════════


class MacroAssignmentCreate(BaseModel):
    """Exactly one of ``tariff_id`` / ``employee_id``."""

    tariff_id: Optional[uuid.UUID] = None
    employee_id: Optional[uuid.UUID] = None
    execution_day: int = Field(..., ge=0, le=31)
    is_active: bool = True

    @model_validator(mode="after")
    def validate_target(self) -> "MacroAssignmentCreate":
        if (self.tariff_id is None) == (self.employee_id is None):
            raise ValueError("exactly one of tariff_id or employee_id is required")
        return self


class MacroAssignmentUpdate(BaseModel):
    execution_day: Optional[int] = Field(None, ge=0, le=31)
    is_active: Optional[bool] = None


class MacroAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    macro_id: uuid.UUID
    tariff_id: Optional[uuid.UUID] = None
    employee_id: Optional[uuid.UUID] = None
    execution_day: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Macros
# ═════════════════════════════════════════════════════════════════════


class MacroCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    macro_type: MacroType
    action_type: MacroActionType
    action_params: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class MacroUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    macro_type: Optional[MacroType] = None
    action_type: Optional[MacroActionType] = None
    action_params: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None


class MacroResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    description: Optional[str] = None
    macro_type: str
    action_type: str
    action_params: dict[str, Any]
    is_active: bool
    assignments: list[MacroAssignmentResponse] = []
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Executions
# ═════════════════════════════════════════════════════════════════════


class ExecuteRequest(BaseModel):
    """Manual run; ``date`` defaults to today."""

    execution_date: Optional[date] = Field(None, alias="date")
    assignment_id: Optional[uuid.UUID] = None

    model_config = ConfigDict(populate_by_name=True)


class ExecuteDueRequest(BaseModel):
    execution_date: Optional[date] = Field(None, alias="date")

    model_config = ConfigDict(populate_by_name=True)


class MacroExecutionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    macro_id: uuid.UUID
    assignment_id: Optional[uuid.UUID] = None
    status: str
    trigger_type: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: dict[str, Any]
    error_message: Optional[str] = None
    triggered_by: Optional[uuid.UUID] = None
    created_at: datetime
