"""Pair in/out bookings into work and break intervals."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

from timetrack.calculation import codes
from timetrack.calculation.types import BookingInput, BookingPair
from timetrack.common.constants import BookingCategory, BookingDirection

MINUTES_PER_DAY = 1440


@dataclass
class PairingResult:
    pairs: list[BookingPair] = field(default_factory=list)
    unpaired_in_ids: list[uuid.UUID] = field(default_factory=list)
    unpaired_out_ids: list[uuid.UUID] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def pair_bookings(bookings: list[BookingInput]) -> PairingResult:
    """Pair bookings per category.

    Explicit ``pair_id`` links win; remaining bookings are matched in
    chronological order. Work runs IN → OUT, breaks run OUT → IN.
    """
    result = PairingResult()
    for category in (BookingCategory.work, BookingCategory.break_):
        subset = [b for b in bookings if b.category == category]
        if not subset:
            continue
        _pair_category(subset, category, result)
    return result


def _pair_category(
    bookings: list[BookingInput],
    category: BookingCategory,
    result: PairingResult,
) -> None:
    ins = sorted((b for b in bookings if b.direction == BookingDirection.in_), key=lambda b: b.time)
    outs = sorted((b for b in bookings if b.direction == BookingDirection.out), key=lambda b: b.time)
    outs_by_id = {b.id: b for b in outs}
    paired: set[uuid.UUID] = set()

    def _link(in_b: BookingInput, out_b: BookingInput) -> BookingPair:
        pair = make_pair(in_b, out_b, category)
        result.pairs.append(pair)
        paired.add(in_b.id)
        paired.add(out_b.id)
        return pair

    # Explicit links first
    for in_b in ins:
        out_b = outs_by_id.get(in_b.pair_id) if in_b.pair_id else None
        if out_b is not None and out_b.id not in paired:
            pair = _link(in_b, out_b)
            if is_cross_midnight(pair):
                result.warnings.append(codes.WARN_CROSS_MIDNIGHT)

    if category == BookingCategory.work:
        _pair_forward(ins, outs, paired, _link, opener_is_in=True)

        # Shift work: an OUT earlier than the IN belongs to the next day
        for in_b in ins:
            if in_b.id in paired:
                continue
            for out_b in outs:
                if out_b.id not in paired and out_b.time < in_b.time:
                    _link(in_b, out_b)
                    result.warnings.append(codes.WARN_CROSS_MIDNIGHT)
                    break
    else:
        _pair_forward(outs, ins, paired, _link, opener_is_in=False)

    result.unpaired_in_ids.extend(b.id for b in ins if b.id not in paired)
    result.unpaired_out_ids.extend(b.id for b in outs if b.id not in paired)


def _pair_forward(openers, closers, paired, link, *, opener_is_in: bool) -> None:
    """Match each opener with the next unpaired closer at or after it."""
    idx = 0
    for opener in openers:
        if opener.id in paired:
            continue
        while idx < len(closers) and (closers[idx].id in paired or closers[idx].time < opener.time):
            idx += 1
        if idx < len(closers):
            closer = closers[idx]
            if opener_is_in:
                link(opener, closer)
            else:
                link(closer, opener)
            idx += 1


def make_pair(in_b: BookingInput, out_b: BookingInput, category: BookingCategory) -> BookingPair:
    if category == BookingCategory.work:
        start, end = in_b.time, out_b.time
    else:
        start, end = out_b.time, in_b.time
    if end < start:
        end += MINUTES_PER_DAY
    return BookingPair(in_booking=in_b, out_booking=out_b, category=category, duration=end - start)


def is_cross_midnight(pair: BookingPair) -> bool:
    if pair.category == BookingCategory.work:
        return pair.in_booking.time > pair.out_booking.time
    return pair.out_booking.time > pair.in_booking.time


def gross_time(pairs: list[BookingPair]) -> int:
    return sum(p.duration for p in pairs if p.category == BookingCategory.work)


def recorded_break_time(pairs: list[BookingPair]) -> int:
    return sum(p.duration for p in pairs if p.category == BookingCategory.break_)


def find_first_come(bookings: list[BookingInput]) -> Optional[int]:
    times = [
        b.time for b in bookings
        if b.direction == BookingDirection.in_ and b.category == BookingCategory.work
    ]
    return min(times) if times else None


def find_last_go(bookings: list[BookingInput]) -> Optional[int]:
    times = [
        b.time for b in bookings
        if b.direction == BookingDirection.out and b.category == BookingCategory.work
    ]
    return max(times) if times else None
