"""Enums and constants for ZMI Time — values stored in VARCHAR columns."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    admin = "admin"
    system_admin = "system_admin"


# ── Day plans ───────────────────────────────────────────────────────

class PlanType(str, enum.Enum):
    fixed = "fixed"
    flextime = "flextime"


class RoundingType(str, enum.Enum):
    none = "none"
    up = "up"
    down = "down"
    nearest = "nearest"
    add = "add"
    subtract = "subtract"


class BreakType(str, enum.Enum):
    fixed = "fixed"
    variable = "variable"
    minimum = "minimum"


class NoBookingBehavior(str, enum.Enum):
    error = "error"
    deduct_target = "deduct_target"
    vocational_school = "vocational_school"
    adopt_target = "adopt_target"
    target_with_order = "target_with_order"


# ── Tariffs ─────────────────────────────────────────────────────────

class CreditType(str, enum.Enum):
    no_evaluation = "no_evaluation"
    complete_carryover = "complete_carryover"
    after_threshold = "after_threshold"
    no_carryover = "no_carryover"


# ── Bookings ────────────────────────────────────────────────────────

class BookingDirection(str, enum.Enum):
    in_ = "in"
    out = "out"


class BookingCategory(str, enum.Enum):
    work = "work"
    break_ = "break"


class BookingSource(str, enum.Enum):
    web = "web"
    terminal = "terminal"
    correction = "correction"
    clock = "clock"


class ClockAction(str, enum.Enum):
    clock_in = "clock_in"
    clock_out = "clock_out"
    break_start = "break_start"
    break_end = "break_end"


class ClockState(str, enum.Enum):
    clocked_out = "clocked_out"
    clocked_in = "clocked_in"
    on_break = "on_break"


# ── Daily values ────────────────────────────────────────────────────

class DailyValueStatus(str, enum.Enum):
    pending = "pending"
    calculated = "calculated"
    error = "error"
    approved = "approved"


# ── Absences ────────────────────────────────────────────────────────

class AbsenceCategory(str, enum.Enum):
    vacation = "vacation"
    illness = "illness"
    special = "special"
    unpaid = "unpaid"


class AbsenceStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


# Portion of the regular hours credited for an absence day
ABSENCE_PORTION_FACTORS: dict[int, float] = {0: 0.0, 1: 1.0, 2: 0.5}


# ── Accounts / export ───────────────────────────────────────────────

class AccountType(str, enum.Enum):
    bonus = "bonus"
    day = "day"
    month = "month"


class AccountUnit(str, enum.Enum):
    minutes = "minutes"
    days = "days"


# ── Macros ──────────────────────────────────────────────────────────

class MacroType(str, enum.Enum):
    weekly = "weekly"
    monthly = "monthly"


class MacroActionType(str, enum.Enum):
    log_message = "log_message"
    recalculate_target_hours = "recalculate_target_hours"
    reset_flextime = "reset_flextime"
    carry_forward_balance = "carry_forward_balance"


class ExecutionStatus(str, enum.Enum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


class TriggerType(str, enum.Enum):
    manual = "manual"
    scheduled = "scheduled"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "bookings:read_own",
        "bookings:write_own",
        "absences:request",
        "daily_values:read_own",
        "monthly_values:read_own",
    ],
    UserRole.manager: [
        "bookings:read_own",
        "bookings:write_own",
        "bookings:read_all",
        "absences:request",
        "absences:approve",
        "daily_values:read_own",
        "daily_values:read_all",
        "monthly_values:read_own",
        "monthly_values:read_all",
    ],
    UserRole.admin: [
        "bookings:read_all",
        "bookings:write_all",
        "absences:request",
        "absences:approve",
        "daily_values:read_all",
        "daily_values:recalculate",
        "monthly_values:read_all",
        "monthly_values:close",
        "employees:manage",
        "time_plans:manage",
        "holidays:manage",
        "export_interfaces:manage",
        "macros:manage",
        "access:manage",
        "users:manage",
        "audit:read",
    ],
    UserRole.system_admin: [
        "bookings:read_all",
        "bookings:write_all",
        "absences:request",
        "absences:approve",
        "daily_values:read_all",
        "daily_values:recalculate",
        "monthly_values:read_all",
        "monthly_values:close",
        "employees:manage",
        "time_plans:manage",
        "holidays:manage",
        "export_interfaces:manage",
        "macros:manage",
        "access:manage",
        "users:manage",
        "audit:read",
        "tenants:manage",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

TENANT_HEADER = "X-Tenant-ID"
MIN_REASON_LENGTH = 10
MIN_YEAR = 1900
MAX_YEAR = 2200
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
