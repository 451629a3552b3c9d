"""Break deduction and overtime arithmetic."""

from __future__ import annotations

from dataclasses import dataclass, field

from timetrack.calculation import codes
from timetrack.calculation.types import BookingPair, BreakConfig
from timetrack.common.constants import BookingCategory, BreakType


@dataclass
class BreakDeductionResult:
    deducted_minutes: int = 0
    warnings: list[str] = field(default_factory=list)


def calculate_overlap(start1: int, end1: int, start2: int, end2: int) -> int:
    """Minutes shared by the half-open intervals [start1, end1) and [start2, end2)."""
    return max(0, min(end1, end2) - max(start1, start2))


def deduct_fixed_break(pairs: list[BookingPair], config: BreakConfig) -> int:
    """A fixed break is deducted wherever work overlaps its window."""
    if config.start_time is None or config.end_time is None:
        return 0
    overlap = 0
    for pair in pairs:
        if pair.category != BookingCategory.work:
            continue
        overlap += calculate_overlap(
            pair.in_booking.time,
            pair.out_booking.time,
            config.start_time,
            config.end_time,
        )
    return min(overlap, config.duration)


def calculate_minimum_break(gross_time: int, config: BreakConfig) -> int:
    if config.after_work_minutes is None:
        return 0
    if gross_time < config.after_work_minutes:
        return 0
    if config.minutes_difference:
        return min(gross_time - config.after_work_minutes, config.duration)
    return config.duration


def calculate_break_deduction(
    pairs: list[BookingPair],
    recorded_break: int,
    gross_time: int,
    configs: list[BreakConfig],
) -> BreakDeductionResult:
    """Combine recorded breaks with the day plan's break rules.

    * recorded break minutes always count;
    * fixed breaks are deducted by their overlap with work;
    * variable breaks only when nothing was recorded;
    * minimum breaks once gross time reaches the threshold.
    """
    result = BreakDeductionResult()
    if not configs:
        result.deducted_minutes = recorded_break
        return result

    if recorded_break > 0:
        result.warnings.append(codes.WARN_MANUAL_BREAK)
    else:
        result.warnings.append(codes.WARN_NO_BREAK_RECORDED)

    total = recorded_break
    auto_applied = False
    for config in configs:
        if config.type == BreakType.fixed:
            total += deduct_fixed_break(pairs, config)
        elif config.type == BreakType.variable:
            if recorded_break == 0 and config.auto_deduct:
                total += config.duration
                auto_applied = auto_applied or config.duration > 0
        elif config.type == BreakType.minimum:
            if config.auto_deduct:
                amount = calculate_minimum_break(gross_time, config)
                total += amount
                auto_applied = auto_applied or amount > 0

    if auto_applied:
        result.warnings.append(codes.WARN_AUTO_BREAK_APPLIED)
    result.deducted_minutes = total
    return result


def calculate_net_time(gross_time: int, break_time: int) -> int:
    return max(0, gross_time - break_time)


def calculate_overtime_undertime(net_time: int, target_time: int) -> tuple[int, int]:
    """Return ``(overtime, undertime)``; at most one of them is non-zero."""
    diff = net_time - target_time
    if diff > 0:
        return diff, 0
    return 0, -diff
