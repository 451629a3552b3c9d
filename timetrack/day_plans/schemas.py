"""Day plan Pydantic schemas — plan settings with nested breaks.

Times of day are minutes from midnight (0–1439); durations are minutes.
"""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from timetrack.common.constants import BreakType, NoBookingBehavior, PlanType, RoundingType

_MINUTE = dict(ge=0, le=1439)


# ═════════════════════════════════════════════════════════════════════
# Breaks
# ═════════════════════════════════════════════════════════════════════


class DayPlanBreakIn(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    break_type: BreakType
    start_time: Optional[int] = Field(None, **_MINUTE)
    end_time: Optional[int] = Field(None, **_MINUTE)
    duration: int = Field(..., ge=0)
    after_work_minutes: Optional[int] = Field(None, ge=0)
    auto_deduct: bool = True
    is_paid: bool = False
    minutes_difference: bool = False
    sort_order: int = 0

    @model_validator(mode="after")
    def validate_window(self) -> "DayPlanBreakIn":
        if self.break_type == BreakType.fixed.value and (self.start_time is None or self.end_time is None):
            raise ValueError("fixed breaks need start_time and end_time")
        if self.break_type == BreakType.minimum.value and self.after_work_minutes is None:
            raise ValueError("minimum breaks need after_work_minutes")
        return self


class DayPlanBreakResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    break_type: str
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    duration: int
    after_work_minutes: Optional[int] = None
    auto_deduct: bool
    is_paid: bool
    minutes_difference: bool
    sort_order: int


# ═════════════════════════════════════════════════════════════════════
# Day plans
# ═════════════════════════════════════════════════════════════════════


class _DayPlanFields(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    description: Optional[str] = None
    come_from: Optional[int] = Field(None, **_MINUTE)
    come_to: Optional[int] = Field(None, **_MINUTE)
    go_from: Optional[int] = Field(None, **_MINUTE)
    go_to: Optional[int] = Field(None, **_MINUTE)
    core_start: Optional[int] = Field(None, **_MINUTE)
    core_end: Optional[int] = Field(None, **_MINUTE)
    regular_hours_2: Optional[int] = Field(None, ge=0, le=1440)
    min_work_time: Optional[int] = Field(None, ge=0)
    max_net_work_time: Optional[int] = Field(None, ge=0)
    holiday_credit_cat1: Optional[int] = Field(None, ge=0)
    holiday_credit_cat2: Optional[int] = Field(None, ge=0)
    holiday_credit_cat3: Optional[int] = Field(None, ge=0)


class DayPlanCreate(_DayPlanFields):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    plan_type: PlanType = PlanType.fixed
    regular_hours: int = Field(480, ge=0, le=1440)
    from_employee_master: bool = False
    tolerance_come_plus: int = Field(0, ge=0)
    tolerance_come_minus: int = Field(0, ge=0)
    tolerance_go_plus: int = Field(0, ge=0)
    tolerance_go_minus: int = Field(0, ge=0)
    rounding_come_type: RoundingType = RoundingType.none
    rounding_come_interval: int = Field(0, ge=0)
    rounding_come_add_value: int = Field(0, ge=0)
    rounding_go_type: RoundingType = RoundingType.none
    rounding_go_interval: int = Field(0, ge=0)
    rounding_go_add_value: int = Field(0, ge=0)
    round_all_bookings: bool = False
    variable_work_time: bool = False
    no_booking_behavior: NoBookingBehavior = NoBookingBehavior.error
    is_active: bool = True
    breaks: list[DayPlanBreakIn] = Field(default_factory=list)


class DayPlanUpdate(_DayPlanFields):
    """Only supplied fields are applied; ``breaks`` replaces the whole list."""

    code: Optional[str] = Field(None, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    plan_type: Optional[PlanType] = None
    regular_hours: Optional[int] = Field(None, ge=0, le=1440)
    from_employee_master: Optional[bool] = None
    tolerance_come_plus: Optional[int] = Field(None, ge=0)
    tolerance_come_minus: Optional[int] = Field(None, ge=0)
    tolerance_go_plus: Optional[int] = Field(None, ge=0)
    tolerance_go_minus: Optional[int] = Field(None, ge=0)
    rounding_come_type: Optional[RoundingType] = None
    rounding_come_interval: Optional[int] = Field(None, ge=0)
    rounding_come_add_value: Optional[int] = Field(None, ge=0)
    rounding_go_type: Optional[RoundingType] = None
    rounding_go_interval: Optional[int] = Field(None, ge=0)
    rounding_go_add_value: Optional[int] = Field(None, ge=0)
    round_all_bookings: Optional[bool] = None
    variable_work_time: Optional[bool] = None
    no_booking_behavior: Optional[NoBookingBehavior] = None
    is_active: Optional[bool] = None
    breaks: Optional[list[DayPlanBreakIn]] = None


class DayPlanCopy(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)


class DayPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    plan_type: str
    come_from: Optional[int] = None
    come_to: Optional[int] = None
    go_from: Optional[int] = None
    go_to: Optional[int] = None
    core_start: Optional[int] = None
    core_end: Optional[int] = None
    regular_hours: int
    regular_hours_2: Optional[int] = None
    from_employee_master: bool
    tolerance_come_plus: int
    tolerance_come_minus: int
    tolerance_go_plus: int
    tolerance_go_minus: int
    rounding_come_type: str
    rounding_come_interval: int
    rounding_come_add_value: int
    rounding_go_type: str
    rounding_go_interval: int
    rounding_go_add_value: int
    round_all_bookings: bool
    min_work_time: Optional[int] = None
    max_net_work_time: Optional[int] = None
    variable_work_time: bool
    holiday_credit_cat1: Optional[int] = None
    holiday_credit_cat2: Optional[int] = None
    holiday_credit_cat3: Optional[int] = None
    no_booking_behavior: str
    is_active: bool
    breaks: list[DayPlanBreakResponse] = []
    created_at: datetime
    updated_at: datetime
