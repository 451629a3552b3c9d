"""Tariff Pydantic schemas — week plan and monthly evaluation rules."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from timetrack.common.constants import CreditType


class _WeekPlan(BaseModel):
    day_plan_monday_id: Optional[uuid.UUID] = None
    day_plan_tuesday_id: Optional[uuid.UUID] = None
    day_plan_wednesday_id: Optional[uuid.UUID] = None
    day_plan_thursday_id: Optional[uuid.UUID] = None
    day_plan_friday_id: Optional[uuid.UUID] = None
    day_plan_saturday_id: Optional[uuid.UUID] = None
    day_plan_sunday_id: Optional[uuid.UUID] = None


class TariffCreate(_WeekPlan):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    credit_type: CreditType = CreditType.no_evaluation
    flextime_threshold: Optional[int] = Field(None, ge=0)
    max_flextime_per_month: Optional[int] = Field(None, ge=0)
    upper_limit_annual: Optional[int] = Field(None, ge=0)
    lower_limit_annual: Optional[int] = Field(None, ge=0)
    annual_floor_balance: Optional[int] = None
    is_active: bool = True


class TariffUpdate(_WeekPlan):
    """Week plan fields are applied only when supplied; ``null`` clears a day."""

    model_config = ConfigDict(str_strip_whitespace=True)

    code: Optional[str] = Field(None, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    credit_type: Optional[CreditType] = None
    flextime_threshold: Optional[int] = Field(None, ge=0)
    max_flextime_per_month: Optional[int] = Field(None, ge=0)
    upper_limit_annual: Optional[int] = Field(None, ge=0)
    lower_limit_annual: Optional[int] = Field(None, ge=0)
    annual_floor_balance: Optional[int] = None
    is_active: Optional[bool] = None


class TariffResponse(_WeekPlan):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    credit_type: str
    flextime_threshold: Optional[int] = None
    max_flextime_per_month: Optional[int] = None
    upper_limit_annual: Optional[int] = None
    lower_limit_annual: Optional[int] = None
    annual_floor_balance: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
