"""Absence Pydantic schemas — absence types and absence days."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from timetrack.common.constants import AbsenceCategory

_ALLOWED_DURATIONS = (0.5, 1.0)


def _check_duration(value: Optional[float]) -> Optional[float]:
    if value is not None and value not in _ALLOWED_DURATIONS:
        raise ValueError("duration must be 1.0 (full day) or 0.5 (half day)")
    return value


# ═════════════════════════════════════════════════════════════════════
# Absence types
# ═════════════════════════════════════════════════════════════════════


class AbsenceTypeCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    code: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    category: AbsenceCategory
    portion: int = Field(1, ge=0, le=2, description="0 = none, 1 = full, 2 = half")
    priority: int = Field(0, ge=0)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    is_active: bool = True


class AbsenceTypeUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    code: Optional[str] = Field(None, max_length=10)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[AbsenceCategory] = None
    portion: Optional[int] = Field(None, ge=0, le=2)
    priority: Optional[int] = Field(None, ge=0)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    is_active: Optional[bool] = None


class AbsenceTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    category: str
    portion: int
    priority: int
    color: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AbsenceTypeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    name: str
    category: str
    color: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Absence days
# ═════════════════════════════════════════════════════════════════════


class AbsenceRangeCreate(BaseModel):
    """Request absences for every working day in ``from``..``to``."""

    model_config = ConfigDict(populate_by_name=True)

    absence_type_id: uuid.UUID
    date_from: date = Field(..., alias="from")
    date_to: date = Field(..., alias="to")
    duration: float = 1.0
    notes: Optional[str] = None

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, value: Optional[float]) -> Optional[float]:
        return _check_duration(value)

    @model_validator(mode="after")
    def validate_range(self) -> "AbsenceRangeCreate":
        if self.date_to < self.date_from:
            raise ValueError("'to' must not be before 'from'")
        if (self.date_to - self.date_from).days > 366:
            raise ValueError("range must not exceed one year")
        return self


class AbsenceUpdate(BaseModel):
    absence_type_id: Optional[uuid.UUID] = None
    duration: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, value: Optional[float]) -> Optional[float]:
        return _check_duration(value)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class AbsenceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    employee_id: uuid.UUID
    absence_date: date
    absence_type_id: uuid.UUID
    absence_type: Optional[AbsenceTypeBrief] = None
    duration: float
    status: str
    notes: Optional[str] = None
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
