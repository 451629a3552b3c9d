"""Access control Pydantic schemas — zones, profiles, employee assignments."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ═════════════════════════════════════════════════════════════════════
# Zones
# ═════════════════════════════════════════════════════════════════════


class AccessZoneCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: bool = True


class AccessZoneUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: Optional[str] = Field(None, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class AccessZoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Profiles
# ═════════════════════════════════════════════════════════════════════


class AccessProfileCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: bool = True
    zone_ids: list[uuid.UUID] = Field(default_factory=list)


class AccessProfileUpdate(BaseModel):
    """``zone_ids`` replaces the whole zone list when supplied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    code: Optional[str] = Field(None, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    zone_ids: Optional[list[uuid.UUID]] = None


class AccessProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    is_active: bool
    zone_ids: list[uuid.UUID] = []
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Employee assignments
# ═════════════════════════════════════════════════════════════════════


class AccessAssignmentCreate(BaseModel):
    employee_id: uuid.UUID
    profile_id: uuid.UUID
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None

    @model_validator(mode="after")
    def validate_dates(self) -> "AccessAssignmentCreate":
        if self.valid_from and self.valid_to and self.valid_to < self.valid_from:
            raise ValueError("valid_to must not be before valid_from")
        return self


class AccessAssignmentUpdate(BaseModel):
    profile_id: Optional[uuid.UUID] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None


class AccessAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    employee_id: uuid.UUID
    profile_id: uuid.UUID
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    created_at: datetime
    updated_at: datetime
