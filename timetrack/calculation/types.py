"""Plain data carried into and out of the calculation engine.

Times of day are minutes from midnight, durations are minutes.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from timetrack.common.constants import (
    BookingCategory,
    BookingDirection,
    BreakType,
    CreditType,
    PlanType,
    RoundingType,
)


@dataclass
class BookingInput:
    id: uuid.UUID
    time: int
    direction: BookingDirection
    category: BookingCategory = BookingCategory.work
    pair_id: Optional[uuid.UUID] = None


@dataclass
class BookingPair:
    in_booking: BookingInput
    out_booking: BookingInput
    category: BookingCategory
    duration: int


@dataclass
class RoundingConfig:
    type: RoundingType = RoundingType.none
    interval: int = 0
    add_value: int = 0


@dataclass
class ToleranceConfig:
    come_plus: int = 0
    come_minus: int = 0
    go_plus: int = 0
    go_minus: int = 0


@dataclass
class BreakConfig:
    type: BreakType
    duration: int
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    after_work_minutes: Optional[int] = None
    auto_deduct: bool = True
    is_paid: bool = False
    minutes_difference: bool = False


@dataclass
class DayPlanInput:
    regular_hours: int = 480
    plan_type: PlanType = PlanType.fixed
    come_from: Optional[int] = None
    come_to: Optional[int] = None
    go_from: Optional[int] = None
    go_to: Optional[int] = None
    core_start: Optional[int] = None
    core_end: Optional[int] = None
    tolerance: ToleranceConfig = field(default_factory=ToleranceConfig)
    rounding_come: Optional[RoundingConfig] = None
    rounding_go: Optional[RoundingConfig] = None
    round_all_bookings: bool = False
    breaks: list[BreakConfig] = field(default_factory=list)
    min_work_time: Optional[int] = None
    max_net_work_time: Optional[int] = None
    variable_work_time: bool = False


@dataclass
class CalculationInput:
    employee_id: uuid.UUID
    day: date
    bookings: list[BookingInput]
    day_plan: DayPlanInput


@dataclass
class CappedTime:
    minutes: int
    source: str
    reason: str


@dataclass
class CappingResult:
    total_capped: int = 0
    items: list[CappedTime] = field(default_factory=list)


@dataclass
class CalculationResult:
    target_time: int = 0
    gross_time: int = 0
    net_time: int = 0
    break_time: int = 0
    overtime: int = 0
    undertime: int = 0
    capped_time: int = 0
    first_come: Optional[int] = None
    last_go: Optional[int] = None
    booking_count: int = 0
    pairs: list[BookingPair] = field(default_factory=list)
    unpaired_in_ids: list[uuid.UUID] = field(default_factory=list)
    unpaired_out_ids: list[uuid.UUID] = field(default_factory=list)
    calculated_times: dict[uuid.UUID, int] = field(default_factory=dict)
    capping: CappingResult = field(default_factory=CappingResult)
    error_codes: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    has_error: bool = False


# ── Monthly ─────────────────────────────────────────────────────────

@dataclass
class DailyValueInput:
    day: date
    gross_time: int = 0
    net_time: int = 0
    target_time: int = 0
    overtime: int = 0
    undertime: int = 0
    break_time: int = 0
    has_error: bool = False


@dataclass
class MonthlyEvaluationRules:
    credit_type: CreditType = CreditType.no_evaluation
    flextime_threshold: Optional[int] = None
    max_flextime_per_month: Optional[int] = None
    flextime_cap_positive: Optional[int] = None
    # stored as a positive number of minutes
    flextime_cap_negative: Optional[int] = None
    annual_floor_balance: Optional[int] = None


@dataclass
class AbsenceSummary:
    vacation_days: float = 0.0
    sick_days: int = 0
    other_absence_days: int = 0


@dataclass
class MonthlyCalcInput:
    daily_values: list[DailyValueInput]
    previous_carryover: int = 0
    rules: Optional[MonthlyEvaluationRules] = None
    absences: AbsenceSummary = field(default_factory=AbsenceSummary)


@dataclass
class MonthlyCalcOutput:
    total_gross_time: int = 0
    total_net_time: int = 0
    total_target_time: int = 0
    total_overtime: int = 0
    total_undertime: int = 0
    total_break_time: int = 0
    flextime_start: int = 0
    flextime_change: int = 0
    flextime_raw: int = 0
    flextime_credited: int = 0
    flextime_forfeited: int = 0
    flextime_end: int = 0
    work_days: int = 0
    days_with_errors: int = 0
    vacation_taken: float = 0.0
    sick_days: int = 0
    other_absence_days: int = 0
    warnings: list[str] = field(default_factory=list)
