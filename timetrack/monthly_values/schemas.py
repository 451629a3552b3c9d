"""Monthly value Pydantic schemas."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MonthlyValueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    year: int
    month: int
    total_gross_time: int
    total_net_time: int
    total_target_time: int
    total_overtime: int
    total_undertime: int
    total_break_time: int
    balance: int
    flextime_start: int
    flextime_change: int
    flextime_end: int
    flextime_credited: int
    flextime_forfeited: int
    flextime_reset_at: Optional[datetime] = None
    vacation_taken: float
    sick_days: int
    other_absence_days: int
    work_days: int
    days_with_errors: int
    warnings: list[str]
    is_closed: bool
    closed_at: Optional[datetime] = None
    closed_by: Optional[uuid.UUID] = None
    close_reason: Optional[str] = None
    reopened_at: Optional[datetime] = None
    reopened_by: Optional[uuid.UUID] = None
    reopen_reason: Optional[str] = None
    updated_at: datetime


class ReasonRequest(BaseModel):
    reason: str = ""


class BatchRequest(BaseModel):
    year: int
    month: int
    employee_ids: Optional[list[uuid.UUID]] = None


class BatchCloseRequest(BatchRequest):
    reason: str = ""
    recalculate: bool = True


class BatchError(BaseModel):
    employee_id: uuid.UUID
    reason: str
    year: Optional[int] = None
    month: Optional[int] = None


class BatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    processed: int
    skipped: int
    failed: int
    errors: list[BatchError] = Field(default_factory=list)
