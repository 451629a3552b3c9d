"""Employee Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response          → response bodies (read)
"""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    personnel_number: str = Field(..., min_length=1, max_length=20)
    pin: Optional[str] = Field(None, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    entry_date: date
    exit_date: Optional[date] = None
    weekly_hours: Optional[float] = Field(None, ge=0, le=168)
    daily_target_hours: Optional[float] = Field(None, ge=0, le=24)
    tariff_id: Optional[uuid.UUID] = None
    is_active: bool = True

    @model_validator(mode="after")
    def validate_dates(self) -> "EmployeeCreate":
        if self.exit_date and self.exit_date < self.entry_date:
            raise ValueError("exit_date must not be before entry_date")
        return self


class EmployeeUpdate(BaseModel):
    """All fields optional — only supplied fields are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    personnel_number: Optional[str] = Field(None, max_length=20)
    pin: Optional[str] = Field(None, max_length=20)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    entry_date: Optional[date] = None
    exit_date: Optional[date] = None
    weekly_hours: Optional[float] = Field(None, ge=0, le=168)
    daily_target_hours: Optional[float] = Field(None, ge=0, le=24)
    tariff_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    personnel_number: str
    pin: Optional[str] = None
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str] = None
    entry_date: date
    exit_date: Optional[date] = None
    weekly_hours: Optional[float] = None
    daily_target_hours: Optional[float] = None
    tariff_id: Optional[uuid.UUID] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Day plan assignments
# ═════════════════════════════════════════════════════════════════════


class DayPlanAssignmentUpsert(BaseModel):
    """``day_plan_id = null`` marks the date as an off day."""

    day_plan_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None


class DayPlanAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    plan_date: date
    day_plan_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
