"""Tolerance and rounding applied to individual booking times."""

from __future__ import annotations

from typing import Optional

from timetrack.common.constants import RoundingType
from timetrack.calculation.types import RoundingConfig, ToleranceConfig


def apply_come_tolerance(
    time: int,
    expected: Optional[int],
    tolerance: ToleranceConfig,
) -> int:
    """Treat an arrival up to ``come_plus`` minutes late as on time.

    ``come_minus`` does not snap; it widens the evaluation window for
    flextime plans (see ``capping.apply_window_capping``).
    """
    if expected is None:
        return time
    if expected < time <= expected + tolerance.come_plus:
        return expected
    return time


def apply_go_tolerance(
    time: int,
    expected: Optional[int],
    tolerance: ToleranceConfig,
) -> int:
    """Treat a departure up to ``go_minus`` minutes early as on time."""
    if expected is None:
        return time
    if expected - tolerance.go_minus <= time < expected:
        return expected
    return time


def round_time(time: int, config: Optional[RoundingConfig]) -> int:
    if config is None:
        return time

    if config.type == RoundingType.add:
        return time + config.add_value
    if config.type == RoundingType.subtract:
        return max(0, time - config.add_value)

    interval = config.interval
    if config.type == RoundingType.none or interval <= 0:
        return time

    remainder = time % interval
    if remainder == 0:
        return time
    if config.type == RoundingType.up:
        return time + (interval - remainder)
    if config.type == RoundingType.down:
        return time - remainder
    if config.type == RoundingType.nearest:
        if remainder * 2 >= interval:
            return time + (interval - remainder)
        return time - remainder
    return time


# Arrivals and departures share the same arithmetic
round_come_time = round_time
round_go_time = round_time
