"""Booking-window and core-hour checks."""

from __future__ import annotations

from typing import Optional

from timetrack.calculation import codes


def validate_time_window(
    time: int,
    window_from: Optional[int],
    window_to: Optional[int],
    early_code: str,
    late_code: str,
) -> list[str]:
    errors: list[str] = []
    if window_from is not None and time < window_from:
        errors.append(early_code)
    if window_to is not None and time > window_to:
        errors.append(late_code)
    return errors


def validate_core_hours(
    first_come: Optional[int],
    last_go: Optional[int],
    core_start: Optional[int],
    core_end: Optional[int],
) -> list[str]:
    """Presence is required for the whole core window when one is defined."""
    errors: list[str] = []
    if core_start is not None and (first_come is None or first_come > core_start):
        errors.append(codes.ERR_MISSED_CORE_START)
    if core_end is not None and (last_go is None or last_go < core_end):
        errors.append(codes.ERR_MISSED_CORE_END)
    return errors
