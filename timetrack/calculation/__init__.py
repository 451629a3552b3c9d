"""Pure time-calculation engine (no database, no web framework)."""

from timetrack.calculation.breaks import (
    calculate_break_deduction,
    calculate_minimum_break,
    calculate_overlap,
    calculate_overtime_undertime,
    deduct_fixed_break,
)
from timetrack.calculation.calculator import Calculator
from timetrack.calculation.capping import apply_window_capping, aggregate_capping
from timetrack.calculation.monthly import (
    apply_flextime_caps,
    calculate_annual_carryover,
    calculate_month,
)
from timetrack.calculation.pairing import pair_bookings
from timetrack.calculation.rounding import apply_come_tolerance, apply_go_tolerance, round_time
from timetrack.calculation.types import (
    AbsenceSummary,
    BookingInput,
    BookingPair,
    BreakConfig,
    CalculationInput,
    CalculationResult,
    DailyValueInput,
    DayPlanInput,
    MonthlyCalcInput,
    MonthlyCalcOutput,
    MonthlyEvaluationRules,
    RoundingConfig,
    ToleranceConfig,
)

__all__ = [
    "AbsenceSummary",
    "BookingInput",
    "BookingPair",
    "BreakConfig",
    "CalculationInput",
    "CalculationResult",
    "Calculator",
    "DailyValueInput",
    "DayPlanInput",
    "MonthlyCalcInput",
    "MonthlyCalcOutput",
    "MonthlyEvaluationRules",
    "RoundingConfig",
    "ToleranceConfig",
    "aggregate_capping",
    "apply_come_tolerance",
    "apply_flextime_caps",
    "apply_go_tolerance",
    "apply_window_capping",
    "calculate_annual_carryover",
    "calculate_break_deduction",
    "calculate_minimum_break",
    "calculate_month",
    "calculate_overlap",
    "calculate_overtime_undertime",
    "deduct_fixed_break",
    "pair_bookings",
    "round_time",
]
