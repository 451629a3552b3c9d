"""Calculation engine tests — tolerance, rounding, pairing, breaks, capping,
daily calculator and monthly crediting rules.

Pure functions only; no database or HTTP involved.
"""

from __future__ import annotations

import uuid
from datetime import date

import pytest

from timetrack.calculation import (
    AbsenceSummary,
    BookingInput,
    BreakConfig,
    CalculationInput,
    Calculator,
    DailyValueInput,
    DayPlanInput,
    MonthlyCalcInput,
    MonthlyEvaluationRules,
    RoundingConfig,
    ToleranceConfig,
    apply_come_tolerance,
    apply_flextime_caps,
    apply_go_tolerance,
    apply_window_capping,
    calculate_annual_carryover,
    calculate_break_deduction,
    calculate_month,
    calculate_overlap,
    pair_bookings,
    round_time,
)
from timetrack.calculation import codes
from timetrack.common.constants import (
    BookingCategory,
    BookingDirection,
    BreakType,
    CreditType,
    PlanType,
    RoundingType,
)

IN = BookingDirection.in_
OUT = BookingDirection.out
WORK = BookingCategory.work
BREAK = BookingCategory.break_


def _b(time: int, direction: BookingDirection, category: BookingCategory = WORK, **kw) -> BookingInput:
    return BookingInput(id=uuid.uuid4(), time=time, direction=direction, category=category, **kw)


def _calc(bookings: list[BookingInput], plan: DayPlanInput):
    return Calculator().calculate(
        CalculationInput(
            employee_id=uuid.uuid4(),
            day=date(2025, 3, 3),
            bookings=bookings,
            day_plan=plan,
        ),
    )


# ═════════════════════════════════════════════════════════════════════
# Tolerance & rounding
# ═════════════════════════════════════════════════════════════════════


class TestTolerance:

    def test_late_arrival_within_tolerance_snaps_to_start(self):
        tol = ToleranceConfig(come_plus=5)
        assert apply_come_tolerance(483, 480, tol) == 480

    def test_late_arrival_beyond_tolerance_is_kept(self):
        tol = ToleranceConfig(come_plus=5)
        assert apply_come_tolerance(486, 480, tol) == 486

    def test_early_arrival_is_not_snapped(self):
        tol = ToleranceConfig(come_plus=5, come_minus=10)
        assert apply_come_tolerance(475, 480, tol) == 475

    def test_early_departure_within_tolerance_snaps_to_end(self):
        tol = ToleranceConfig(go_minus=5)
        assert apply_go_tolerance(1017, 1020, tol) == 1020

    def test_early_departure_beyond_tolerance_is_kept(self):
        tol = ToleranceConfig(go_minus=5)
        assert apply_go_tolerance(1010, 1020, tol) == 1010

    def test_no_expected_time_leaves_value(self):
        assert apply_come_tolerance(483, None, ToleranceConfig(come_plus=5)) == 483


class TestRounding:

    @pytest.mark.parametrize(
        "rounding_type, time, expected",
        [
            (RoundingType.up, 482, 495),
            (RoundingType.down, 494, 480),
            (RoundingType.nearest, 487, 480),
            (RoundingType.nearest, 488, 495),
            (RoundingType.up, 495, 495),
        ],
    )
    def test_interval_rounding(self, rounding_type, time, expected):
        assert round_time(time, RoundingConfig(type=rounding_type, interval=15)) == expected

    def test_add_and_subtract(self):
        assert round_time(480, RoundingConfig(type=RoundingType.add, add_value=10)) == 490
        assert round_time(5, RoundingConfig(type=RoundingType.subtract, add_value=10)) == 0

    def test_zero_interval_is_noop(self):
        assert round_time(487, RoundingConfig(type=RoundingType.up, interval=0)) == 487

    def test_no_config(self):
        assert round_time(487, None) == 487


# ═════════════════════════════════════════════════════════════════════
# Pairing
# ═════════════════════════════════════════════════════════════════════


class TestPairing:

    def test_work_and_break_pairs(self):
        result = pair_bookings([
            _b(480, IN), _b(720, OUT, BREAK), _b(750, IN, BREAK), _b(1020, OUT),
        ])
        durations = {p.category: p.duration for p in result.pairs}
        assert durations == {WORK: 540, BREAK: 30}
        assert not result.unpaired_in_ids and not result.unpaired_out_ids

    def test_unpaired_in_is_reported(self):
        come = _b(480, IN)
        result = pair_bookings([come])
        assert result.unpaired_in_ids == [come.id]

    def test_cross_midnight_shift(self):
        result = pair_bookings([_b(1320, IN), _b(360, OUT)])
        assert len(result.pairs) == 1
        assert result.pairs[0].duration == 480
        assert codes.WARN_CROSS_MIDNIGHT in result.warnings

    def test_explicit_pair_id_wins(self):
        out_late = _b(1020, OUT)
        out_early = _b(600, OUT)
        come = _b(480, IN, pair_id=out_late.id)
        result = pair_bookings([come, out_early, out_late])
        assert result.pairs[0].out_booking.id == out_late.id
        assert result.unpaired_out_ids == [out_early.id]


# ═════════════════════════════════════════════════════════════════════
# Breaks & capping
# ═════════════════════════════════════════════════════════════════════


class TestBreaks:

    def test_overlap(self):
        assert calculate_overlap(480, 720, 700, 760) == 20
        assert calculate_overlap(480, 600, 700, 760) == 0

    def test_fixed_break_deducted_by_overlap(self):
        pairs = pair_bookings([_b(480, IN), _b(1020, OUT)]).pairs
        config = BreakConfig(type=BreakType.fixed, duration=30, start_time=720, end_time=750)
        result = calculate_break_deduction(pairs, 0, 540, [config])
        assert result.deducted_minutes == 30

    def test_minimum_break_after_threshold(self):
        pairs = pair_bookings([_b(480, IN), _b(1020, OUT)]).pairs
        config = BreakConfig(type=BreakType.minimum, duration=30, after_work_minutes=360)
        result = calculate_break_deduction(pairs, 0, 540, [config])
        assert result.deducted_minutes == 30
        assert codes.WARN_AUTO_BREAK_APPLIED in result.warnings

    def test_minimum_break_minutes_difference(self):
        pairs = pair_bookings([_b(480, IN), _b(850, OUT)]).pairs
        config = BreakConfig(
            type=BreakType.minimum, duration=30, after_work_minutes=360, minutes_difference=True,
        )
        result = calculate_break_deduction(pairs, 0, 370, [config])
        assert result.deducted_minutes == 10

    def test_variable_break_skipped_when_break_recorded(self):
        config = BreakConfig(type=BreakType.variable, duration=45)
        result = calculate_break_deduction([], 20, 540, [config])
        assert result.deducted_minutes == 20
        assert codes.WARN_MANUAL_BREAK in result.warnings


class TestWindowCapping:

    def test_early_arrival_capped_to_window(self):
        assert apply_window_capping(
            450, 480, 1020, 0, 0, is_arrival=True, allow_early_tolerance=False,
        ) == (480, 30)

    def test_come_minus_widens_window_for_flextime(self):
        assert apply_window_capping(
            450, 480, 1020, 15, 0, is_arrival=True, allow_early_tolerance=True,
        ) == (465, 15)

    def test_late_departure_capped_with_go_plus(self):
        assert apply_window_capping(
            1080, 480, 1020, 0, 30, is_arrival=False, allow_early_tolerance=False,
        ) == (1050, 30)


# ═════════════════════════════════════════════════════════════════════
# Daily calculator
# ═════════════════════════════════════════════════════════════════════


class TestCalculator:

    def test_regular_day(self):
        plan = DayPlanInput(
            regular_hours=480,
            come_from=480,
            go_to=1020,
            breaks=[BreakConfig(type=BreakType.fixed, duration=60, start_time=720, end_time=780)],
        )
        result = _calc([_b(480, IN), _b(1020, OUT)], plan)
        assert result.gross_time == 540
        assert result.break_time == 60
        assert result.net_time == 480
        assert (result.overtime, result.undertime) == (0, 0)
        assert not result.has_error

    def test_tolerance_applied_to_first_and_last_booking(self):
        plan = DayPlanInput(
            regular_hours=540,
            come_from=480,
            go_to=1020,
            tolerance=ToleranceConfig(come_plus=5, go_minus=5),
        )
        come, go = _b(483, IN), _b(1017, OUT)
        result = _calc([come, go], plan)
        assert result.calculated_times[come.id] == 480
        assert result.calculated_times[go.id] == 1020
        assert result.gross_time == 540

    def test_no_bookings_is_error(self):
        result = _calc([], DayPlanInput())
        assert result.has_error
        assert result.error_codes == [codes.ERR_NO_BOOKINGS]
        assert result.target_time == 480

    def test_missing_go(self):
        result = _calc([_b(480, IN)], DayPlanInput())
        assert codes.ERR_MISSING_GO in result.error_codes

    def test_max_net_time_caps_and_warns(self):
        plan = DayPlanInput(regular_hours=480, max_net_work_time=600)
        result = _calc([_b(420, IN), _b(1140, OUT)], plan)
        assert result.net_time == 600
        assert result.capped_time == 120
        assert codes.WARN_MAX_TIME_REACHED in result.warnings

    def test_core_hours_missed(self):
        plan = DayPlanInput(plan_type=PlanType.flextime, core_start=540, core_end=900)
        result = _calc([_b(600, IN), _b(1020, OUT)], plan)
        assert codes.ERR_MISSED_CORE_START in result.error_codes
        assert codes.ERR_MISSED_CORE_END not in result.error_codes

    def test_undertime(self):
        result = _calc([_b(480, IN), _b(900, OUT)], DayPlanInput(regular_hours=480))
        assert result.undertime == 60
        assert result.overtime == 0


# ═════════════════════════════════════════════════════════════════════
# Monthly evaluation
# ═════════════════════════════════════════════════════════════════════


def _month(overtime: int = 0, undertime: int = 0, **kw) -> MonthlyCalcInput:
    return MonthlyCalcInput(
        daily_values=[
            DailyValueInput(
                day=date(2025, 3, 3),
                gross_time=480 + overtime - undertime,
                net_time=480 + overtime - undertime,
                target_time=480,
                overtime=overtime,
                undertime=undertime,
            ),
        ],
        **kw,
    )


class TestMonthly:

    def test_no_evaluation_transfers_change(self):
        out = calculate_month(_month(overtime=90, previous_carryover=30))
        assert out.flextime_change == 90
        assert out.flextime_end == 120
        assert out.work_days == 1

    def test_complete_carryover_with_monthly_cap(self):
        rules = MonthlyEvaluationRules(
            credit_type=CreditType.complete_carryover, max_flextime_per_month=60,
        )
        out = calculate_month(_month(overtime=90, rules=rules))
        assert out.flextime_credited == 60
        assert out.flextime_forfeited == 30
        assert out.flextime_end == 60
        assert codes.WARN_MONTHLY_CAP in out.warnings

    def test_complete_carryover_balance_cap(self):
        rules = MonthlyEvaluationRules(
            credit_type=CreditType.complete_carryover, flextime_cap_positive=100,
        )
        out = calculate_month(_month(overtime=90, previous_carryover=50, rules=rules))
        assert out.flextime_end == 100
        assert out.flextime_forfeited == 40

    def test_after_threshold(self):
        rules = MonthlyEvaluationRules(credit_type=CreditType.after_threshold, flextime_threshold=60)
        out = calculate_month(_month(overtime=90, rules=rules))
        assert out.flextime_credited == 30
        assert out.flextime_forfeited == 60

    def test_after_threshold_below_threshold(self):
        rules = MonthlyEvaluationRules(credit_type=CreditType.after_threshold, flextime_threshold=60)
        out = calculate_month(_month(overtime=40, rules=rules))
        assert out.flextime_credited == 0
        assert codes.WARN_BELOW_THRESHOLD in out.warnings

    def test_after_threshold_undertime_deducted_in_full(self):
        rules = MonthlyEvaluationRules(credit_type=CreditType.after_threshold, flextime_threshold=60)
        out = calculate_month(_month(undertime=45, previous_carryover=100, rules=rules))
        assert out.flextime_credited == -45
        assert out.flextime_end == 55

    def test_no_carryover_resets(self):
        rules = MonthlyEvaluationRules(credit_type=CreditType.no_carryover)
        out = calculate_month(_month(overtime=90, previous_carryover=200, rules=rules))
        assert out.flextime_end == 0
        assert out.flextime_forfeited == 90

    def test_absence_summary_is_copied(self):
        out = calculate_month(_month(absences=AbsenceSummary(vacation_days=1.5, sick_days=2)))
        assert out.vacation_taken == 1.5
        assert out.sick_days == 2

    def test_flextime_caps(self):
        assert apply_flextime_caps(150, 100, 50) == (100, 50)
        assert apply_flextime_caps(-80, 100, 50) == (-50, 0)

    def test_annual_carryover_floor(self):
        assert calculate_annual_carryover(-300, 120) == -120
        assert calculate_annual_carryover(200, 120) == 200
        assert calculate_annual_carryover(None, 120) == 0
