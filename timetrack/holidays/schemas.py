"""Holiday Pydantic schemas."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HolidayCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    holiday_date: date
    name: str = Field(..., min_length=1, max_length=255)
    category: int = Field(1, ge=1, le=3, description="1 = full, 2 = half, 3 = custom credit")
    applies_to_all: bool = True


class HolidayUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    holiday_date: Optional[date] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[int] = Field(None, ge=1, le=3)
    applies_to_all: Optional[bool] = None


class HolidayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    holiday_date: date
    name: str
    category: int
    applies_to_all: bool
    created_at: datetime
    updated_at: datetime
