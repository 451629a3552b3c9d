"""Daily value Pydantic schemas."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DailyValueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    value_date: date
    status: str
    gross_time: int
    net_time: int
    target_time: int
    overtime: int
    undertime: int
    break_time: int
    capped_time: int
    balance: int
    first_come: Optional[int] = None
    last_go: Optional[int] = None
    booking_count: int
    has_error: bool
    error_codes: list[str]
    warnings: list[str]
    calculated_at: Optional[datetime] = None


class RecalculateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date_from: date = Field(..., alias="from")
    date_to: date = Field(..., alias="to")
    employee_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def validate_range(self) -> "RecalculateRequest":
        if self.date_to < self.date_from:
            raise ValueError("'to' must not be before 'from'")
        if (self.date_to - self.date_from).days > 366:
            raise ValueError("range must not exceed one year")
        return self


class RecalculateError(BaseModel):
    employee_id: uuid.UUID
    date: date
    error: str


class RecalculateResponse(BaseModel):
    processed_days: int
    failed_days: int
    errors: list[RecalculateError]
