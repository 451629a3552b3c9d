"""Monthly aggregation and flextime crediting rules."""

from __future__ import annotations

from typing import Optional

from timetrack.calculation import codes
from timetrack.calculation.types import (
    MonthlyCalcInput,
    MonthlyCalcOutput,
    MonthlyEvaluationRules,
)
from timetrack.common.constants import CreditType


def calculate_month(calc_input: MonthlyCalcInput) -> MonthlyCalcOutput:
    """Aggregate daily values and credit the month's flextime change.

    Credit types:

    ======================  ==============================================
    ``no_evaluation``       change transferred 1:1
    ``complete_carryover``  monthly cap, then upper/lower balance caps
    ``after_threshold``     only overtime above the threshold is credited;
                            undertime is deducted in full
    ``no_carryover``        balance resets to zero
    ======================  ==============================================
    """
    out = MonthlyCalcOutput(
        flextime_start=calc_input.previous_carryover,
        vacation_taken=calc_input.absences.vacation_days,
        sick_days=calc_input.absences.sick_days,
        other_absence_days=calc_input.absences.other_absence_days,
    )

    for dv in calc_input.daily_values:
        out.total_gross_time += dv.gross_time
        out.total_net_time += dv.net_time
        out.total_target_time += dv.target_time
        out.total_overtime += dv.overtime
        out.total_undertime += dv.undertime
        out.total_break_time += dv.break_time
        if dv.gross_time > 0 or dv.net_time > 0:
            out.work_days += 1
        if dv.has_error:
            out.days_with_errors += 1

    out.flextime_change = out.total_overtime - out.total_undertime
    out.flextime_raw = out.flextime_start + out.flextime_change

    rules = calc_input.rules
    credit_type = rules.credit_type if rules is not None else CreditType.no_evaluation

    if credit_type == CreditType.complete_carryover:
        _complete_carryover(out, rules)
    elif credit_type == CreditType.after_threshold:
        _after_threshold(out, rules)
    elif credit_type == CreditType.no_carryover:
        out.flextime_credited = 0
        out.flextime_end = 0
        out.flextime_forfeited = out.flextime_change
        out.warnings.append(codes.WARN_NO_CARRYOVER)
    else:
        out.flextime_credited = out.flextime_change
        out.flextime_end = out.flextime_raw
        out.flextime_forfeited = 0

    return out


def _complete_carryover(out: MonthlyCalcOutput, rules: MonthlyEvaluationRules) -> None:
    credited = out.flextime_change
    cap = rules.max_flextime_per_month
    if cap is not None and credited > cap:
        out.flextime_forfeited = credited - cap
        credited = cap
        out.warnings.append(codes.WARN_MONTHLY_CAP)

    out.flextime_credited = credited
    _apply_balance_caps(out, out.flextime_start + credited, rules)


def _after_threshold(out: MonthlyCalcOutput, rules: MonthlyEvaluationRules) -> None:
    threshold = rules.flextime_threshold or 0
    change = out.flextime_change

    if change > threshold:
        out.flextime_credited = change - threshold
        out.flextime_forfeited = threshold
    elif change > 0:
        out.flextime_credited = 0
        out.flextime_forfeited = change
        out.warnings.append(codes.WARN_BELOW_THRESHOLD)
    else:
        out.flextime_credited = change
        out.flextime_forfeited = 0

    cap = rules.max_flextime_per_month
    if cap is not None and out.flextime_credited > cap:
        out.flextime_forfeited += out.flextime_credited - cap
        out.flextime_credited = cap
        out.warnings.append(codes.WARN_MONTHLY_CAP)

    _apply_balance_caps(out, out.flextime_start + out.flextime_credited, rules)


def _apply_balance_caps(
    out: MonthlyCalcOutput,
    balance: int,
    rules: MonthlyEvaluationRules,
) -> None:
    capped, forfeited = apply_flextime_caps(
        balance, rules.flextime_cap_positive, rules.flextime_cap_negative,
    )
    out.flextime_end = capped
    out.flextime_forfeited += forfeited
    if capped != balance:
        out.warnings.append(codes.WARN_FLEXTIME_CAPPED)


def apply_flextime_caps(
    balance: int,
    cap_positive: Optional[int],
    cap_negative: Optional[int],
) -> tuple[int, int]:
    """Clamp *balance* into ``[-cap_negative, cap_positive]``.

    Only the positive excess counts as forfeited.
    """
    forfeited = 0
    if cap_positive is not None and balance > cap_positive:
        forfeited = balance - cap_positive
        balance = cap_positive
    if cap_negative is not None and balance < -cap_negative:
        balance = -cap_negative
    return balance, forfeited


def calculate_annual_carryover(
    balance: Optional[int],
    annual_floor: Optional[int],
) -> int:
    """Year-end balance carried forward, never below ``-annual_floor``."""
    if balance is None:
        return 0
    if annual_floor is not None and balance < -annual_floor:
        return -annual_floor
    return balance
