"""Error and warning codes attached to daily and monthly results."""

# ── Errors (the day cannot be evaluated as booked) ──────────────────
ERR_NO_BOOKINGS = "NO_BOOKINGS"
ERR_MISSING_COME = "MISSING_COME"
ERR_MISSING_GO = "MISSING_GO"
ERR_EARLY_COME = "EARLY_COME"
ERR_LATE_COME = "LATE_COME"
ERR_EARLY_GO = "EARLY_GO"
ERR_LATE_GO = "LATE_GO"
ERR_MISSED_CORE_START = "MISSED_CORE_START"
ERR_MISSED_CORE_END = "MISSED_CORE_END"
ERR_BELOW_MIN_WORK_TIME = "BELOW_MIN_WORK_TIME"

# ── Daily warnings ──────────────────────────────────────────────────
WARN_CROSS_MIDNIGHT = "CROSS_MIDNIGHT"
WARN_MAX_TIME_REACHED = "MAX_TIME_REACHED"
WARN_MANUAL_BREAK = "MANUAL_BREAK"
WARN_NO_BREAK_RECORDED = "NO_BREAK_RECORDED"
WARN_AUTO_BREAK_APPLIED = "AUTO_BREAK_APPLIED"
WARN_OFF_DAY = "OFF_DAY"
WARN_BOOKINGS_ON_OFF_DAY = "BOOKINGS_ON_OFF_DAY"
WARN_HOLIDAY = "HOLIDAY"
WARN_WORKED_ON_HOLIDAY = "WORKED_ON_HOLIDAY"
WARN_ABSENCE = "ABSENCE"
WARN_ABSENCE_ON_HOLIDAY = "ABSENCE_ON_HOLIDAY"
WARN_NO_BOOKINGS_CREDITED = "NO_BOOKINGS_CREDITED"
WARN_NO_BOOKINGS_DEDUCTED = "NO_BOOKINGS_DEDUCTED"
WARN_VOCATIONAL_SCHOOL = "VOCATIONAL_SCHOOL"

# ── Monthly warnings ────────────────────────────────────────────────
WARN_MONTHLY_CAP = "MONTHLY_CAP"
WARN_FLEXTIME_CAPPED = "FLEXTIME_CAPPED"
WARN_BELOW_THRESHOLD = "BELOW_THRESHOLD"
WARN_NO_CARRYOVER = "NO_CARRYOVER"
