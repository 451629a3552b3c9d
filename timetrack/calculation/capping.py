"""Evaluation-window and maximum-net-time capping."""

from __future__ import annotations

from typing import Optional

from timetrack.calculation.types import CappedTime, CappingResult

SOURCE_EARLY_ARRIVAL = "early_arrival"
SOURCE_LATE_LEAVE = "late_leave"
SOURCE_MAX_NET_TIME = "max_net_time"


def apply_window_capping(
    time: int,
    window_start: Optional[int],
    window_end: Optional[int],
    tolerance_minus: int,
    tolerance_plus: int,
    *,
    is_arrival: bool,
    allow_early_tolerance: bool,
) -> tuple[int, int]:
    """Clamp a booking into the evaluation window.

    Returns ``(adjusted_time, capped_minutes)``. Arrivals before the window
    start are moved to it (the start extends by ``tolerance_minus`` for
    variable work time / flextime plans); departures after the window end
    plus ``tolerance_plus`` are moved back.
    """
    if is_arrival and window_start is not None:
        effective_start = window_start
        if allow_early_tolerance and tolerance_minus > 0:
            effective_start = window_start - tolerance_minus
        if time < effective_start:
            return effective_start, effective_start - time

    if not is_arrival and window_end is not None:
        effective_end = window_end + tolerance_plus
        if time > effective_end:
            return effective_end, time - effective_end

    return time, 0


def apply_max_net_capping(net_time: int, max_net: Optional[int]) -> tuple[int, int]:
    """Return ``(capped_net, capped_minutes)``."""
    if max_net is None or net_time <= max_net:
        return net_time, 0
    return max_net, net_time - max_net


def max_net_time_capping(net_time: int, max_net: Optional[int]) -> Optional[CappedTime]:
    _, capped = apply_max_net_capping(net_time, max_net)
    if not capped:
        return None
    return CappedTime(
        minutes=capped,
        source=SOURCE_MAX_NET_TIME,
        reason="Exceeded maximum net work time",
    )


def aggregate_capping(*items: Optional[CappedTime]) -> CappingResult:
    result = CappingResult()
    for item in items:
        if item is not None and item.minutes > 0:
            result.items.append(item)
            result.total_capped += item.minutes
    return result
