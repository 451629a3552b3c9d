"""Daily time calculation: bookings + day plan → gross/net/overtime."""

from __future__ import annotations

from typing import Optional

from timetrack.calculation import codes
from timetrack.calculation.breaks import (
    calculate_break_deduction,
    calculate_net_time,
    calculate_overtime_undertime,
)
from timetrack.calculation.capping import (
    SOURCE_EARLY_ARRIVAL,
    SOURCE_LATE_LEAVE,
    aggregate_capping,
    apply_max_net_capping,
    apply_window_capping,
    max_net_time_capping,
)
from timetrack.calculation.pairing import (
    find_first_come,
    find_last_go,
    gross_time,
    pair_bookings,
    recorded_break_time,
)
from timetrack.calculation.rounding import (
    apply_come_tolerance,
    apply_go_tolerance,
    round_come_time,
    round_go_time,
)
from timetrack.calculation.types import (
    BookingInput,
    CalculationInput,
    CalculationResult,
    CappedTime,
    DayPlanInput,
)
from timetrack.calculation.validation import validate_core_hours, validate_time_window
from timetrack.common.constants import BookingCategory, BookingDirection, PlanType


class Calculator:
    """Stateless daily calculator; one instance can be shared."""

    def calculate(self, calc_input: CalculationInput) -> CalculationResult:
        plan = calc_input.day_plan
        result = CalculationResult(
            target_time=plan.regular_hours,
            booking_count=len(calc_input.bookings),
        )

        if not calc_input.bookings:
            result.error_codes.append(codes.ERR_NO_BOOKINGS)
            result.has_error = True
            return result

        processed, validation, window_caps = self._process_bookings(
            calc_input.bookings, plan, result,
        )

        # ── Pairing ─────────────────────────────────────────────────
        pairing = pair_bookings(processed)
        result.pairs = pairing.pairs
        result.unpaired_in_ids = pairing.unpaired_in_ids
        result.unpaired_out_ids = pairing.unpaired_out_ids
        result.warnings.extend(pairing.warnings)
        if pairing.unpaired_in_ids:
            result.error_codes.append(codes.ERR_MISSING_GO)
        if pairing.unpaired_out_ids:
            result.error_codes.append(codes.ERR_MISSING_COME)

        # First come / last go use times before window capping
        result.first_come = find_first_come(validation)
        result.last_go = find_last_go(validation)

        # ── Window and core-hour validation ─────────────────────────
        if result.first_come is not None:
            result.error_codes.extend(validate_time_window(
                result.first_come, plan.come_from, plan.come_to,
                codes.ERR_EARLY_COME, codes.ERR_LATE_COME,
            ))
        if result.last_go is not None:
            result.error_codes.extend(validate_time_window(
                result.last_go, plan.go_from, plan.go_to,
                codes.ERR_EARLY_GO, codes.ERR_LATE_GO,
            ))
        result.error_codes.extend(validate_core_hours(
            result.first_come, result.last_go, plan.core_start, plan.core_end,
        ))

        # ── Times ───────────────────────────────────────────────────
        result.gross_time = gross_time(result.pairs)
        breaks = calculate_break_deduction(
            result.pairs,
            recorded_break_time(result.pairs),
            result.gross_time,
            plan.breaks,
        )
        result.break_time = breaks.deducted_minutes
        result.warnings.extend(breaks.warnings)

        uncapped_net = calculate_net_time(result.gross_time, result.break_time)
        result.net_time, _ = apply_max_net_capping(uncapped_net, plan.max_net_work_time)
        if result.net_time != uncapped_net:
            result.warnings.append(codes.WARN_MAX_TIME_REACHED)

        result.capping = aggregate_capping(
            *window_caps,
            max_net_time_capping(uncapped_net, plan.max_net_work_time),
        )
        result.capped_time = result.capping.total_capped

        if plan.min_work_time is not None and result.net_time < plan.min_work_time:
            result.error_codes.append(codes.ERR_BELOW_MIN_WORK_TIME)

        result.overtime, result.undertime = calculate_overtime_undertime(
            result.net_time, result.target_time,
        )
        result.has_error = bool(result.error_codes)
        return result

    # ── Booking preprocessing ───────────────────────────────────────

    def _process_bookings(
        self,
        bookings: list[BookingInput],
        plan: DayPlanInput,
        result: CalculationResult,
    ) -> tuple[list[BookingInput], list[BookingInput], list[Optional[CappedTime]]]:
        """Apply tolerance, rounding and window capping.

        Returns ``(processed, validation, capping_items)`` where
        *validation* holds the times before window capping.
        """
        allow_early_tolerance = plan.variable_work_time or plan.plan_type == PlanType.flextime

        # Without round_all_bookings only the first arrival and last departure are rounded
        first_in_idx: Optional[int] = None
        last_out_idx: Optional[int] = None
        if not plan.round_all_bookings:
            for idx, booking in enumerate(bookings):
                if booking.category != BookingCategory.work:
                    continue
                if booking.direction == BookingDirection.in_ and first_in_idx is None:
                    first_in_idx = idx
                if booking.direction == BookingDirection.out:
                    last_out_idx = idx

        processed: list[BookingInput] = []
        validation: list[BookingInput] = []
        caps: list[Optional[CappedTime]] = []

        for idx, booking in enumerate(bookings):
            calculated = booking.time
            capped_time = booking.time
            if booking.category == BookingCategory.work:
                is_arrival = booking.direction == BookingDirection.in_
                if is_arrival:
                    calculated = apply_come_tolerance(booking.time, plan.come_from, plan.tolerance)
                    if plan.round_all_bookings or idx == first_in_idx:
                        calculated = round_come_time(calculated, plan.rounding_come)
                else:
                    expected_go = plan.go_to if plan.go_to is not None else plan.go_from
                    calculated = apply_go_tolerance(booking.time, expected_go, plan.tolerance)
                    if plan.round_all_bookings or idx == last_out_idx:
                        calculated = round_go_time(calculated, plan.rounding_go)

                capped_time, capped = apply_window_capping(
                    calculated,
                    plan.come_from,
                    plan.go_to,
                    plan.tolerance.come_minus,
                    plan.tolerance.go_plus,
                    is_arrival=is_arrival,
                    allow_early_tolerance=allow_early_tolerance,
                )
                if capped > 0:
                    caps.append(CappedTime(
                        minutes=capped,
                        source=SOURCE_EARLY_ARRIVAL if is_arrival else SOURCE_LATE_LEAVE,
                        reason=(
                            "Arrival before evaluation window" if is_arrival
                            else "Departure after evaluation window"
                        ),
                    ))

            validation.append(_with_time(booking, calculated))
            processed.append(_with_time(booking, capped_time))
            result.calculated_times[booking.id] = capped_time

        return processed, validation, caps


def _with_time(booking: BookingInput, time: int) -> BookingInput:
    return BookingInput(
        id=booking.id,
        time=time,
        direction=booking.direction,
        category=booking.category,
        pair_id=booking.pair_id,
    )
