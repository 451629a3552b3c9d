"""Tests for shared utilities — minute formatting, calendar helpers,
account mapping list operations, monthly CSV/print export and filters.
"""

from __future__ import annotations

import csv
import io
import uuid
from datetime import date

import pytest
from sqlalchemy import select

from timetrack.common.exceptions import ValidationException, _combine_errors
from timetrack.common.filters import apply_filters, apply_sorting
from timetrack.common.timeutil import (
    clamp_day_of_month,
    format_minutes,
    month_days,
    next_month,
    normalize_cross_midnight,
    parse_hhmm,
    previous_month,
    sunday_based_weekday,
    validate_year_month,
)
from timetrack.daily_values.models import DailyValue
from timetrack.employees.models import Employee
from timetrack.export_interfaces import mapping
from timetrack.monthly_values.export import CSV_HEADER, build_csv, build_print_html, export_filename
from timetrack.monthly_values.models import MonthlyValue


# ═════════════════════════════════════════════════════════════════════
# Time utilities
# ═════════════════════════════════════════════════════════════════════


class TestTimeUtil:

    @pytest.mark.parametrize(
        "minutes, expected",
        [(0, "0:00"), (485, "8:05"), (-90, "-1:30"), (None, "")],
    )
    def test_format_minutes(self, minutes, expected):
        assert format_minutes(minutes) == expected

    def test_parse_hhmm(self):
        assert parse_hhmm("08:15") == 495
        with pytest.raises(ValueError):
            parse_hhmm("24:00")

    def test_normalize_cross_midnight(self):
        assert normalize_cross_midnight(1320, 360) == 1800
        assert normalize_cross_midnight(480, 1020) == 1020

    def test_month_navigation(self):
        assert previous_month(2025, 1) == (2024, 12)
        assert next_month(2025, 12) == (2026, 1)
        assert len(month_days(2024, 2)) == 29

    def test_clamp_day_of_month(self):
        assert clamp_day_of_month(2025, 2, 31) == 28
        assert clamp_day_of_month(2025, 3, 31) == 31

    def test_sunday_based_weekday(self):
        assert sunday_based_weekday(date(2025, 3, 2)) == 0  # Sunday
        assert sunday_based_weekday(date(2025, 3, 8)) == 6  # Saturday

    def test_validate_year_month_combines_errors(self):
        with pytest.raises(ValidationException) as exc:
            validate_year_month(1800, 13)
        assert set(exc.value.errors) == {"year", "month"}
        assert "year:" in exc.value.detail and "month:" in exc.value.detail

    def test_combine_errors(self):
        assert _combine_errors({"a": ["x"], "b": ["y", "z"]}) == "a: x; b: y; b: z"


# ═════════════════════════════════════════════════════════════════════
# Account mapping
# ═════════════════════════════════════════════════════════════════════


class TestMapping:

    def test_add_selected_appends_new_only(self):
        assert mapping.add_selected(["a", "b"], ["c", "a", "d"]) == ["a", "b", "c", "d"]

    def test_remove_selected(self):
        assert mapping.remove_selected(["a", "b", "c"], ["b"]) == ["a", "c"]

    def test_add_all_and_remove_all(self):
        assert mapping.add_all(["b"], ["a", "b", "c"]) == ["b", "a", "c"]
        assert mapping.remove_all(["a", "b"]) == []

    def test_move_up_keeps_first_position(self):
        assert mapping.move_up(["a", "b", "c"], ["a", "c"]) == ["a", "c", "b"]

    def test_move_up_block_moves_together(self):
        assert mapping.move_up(["a", "b", "c", "d"], ["b", "c"]) == ["b", "c", "a", "d"]

    def test_move_down(self):
        assert mapping.move_down(["a", "b", "c", "d"], ["a", "b"]) == ["c", "a", "b", "d"]
        assert mapping.move_down(["a", "b"], ["b"]) == ["a", "b"]


# ═════════════════════════════════════════════════════════════════════
# Monthly export
# ═════════════════════════════════════════════════════════════════════


def _daily(day: date, **values) -> DailyValue:
    data = dict(
        id=uuid.uuid4(),
        value_date=day,
        gross_time=0,
        net_time=0,
        target_time=480,
        overtime=0,
        undertime=0,
        break_time=0,
        has_error=False,
    )
    data.update(values)
    return DailyValue(**data)


class TestMonthlyExport:

    def test_filename(self):
        assert export_filename(2025, 3) == "monthly-evaluation-2025-03.csv"

    def test_csv_has_one_row_per_day(self):
        content = build_csv(2025, 2, [])
        rows = list(csv.reader(io.StringIO(content)))
        assert rows[0] == CSV_HEADER
        assert len(rows) == 1 + 28

    def test_csv_day_values_and_error_flag(self):
        dv = _daily(date(2025, 3, 3), gross_time=540, net_time=510, break_time=30, overtime=30, has_error=True)
        rows = list(csv.reader(io.StringIO(build_csv(2025, 3, [dv]))))
        day_row = rows[3]
        assert day_row[:2] == ["03.03", "Mon"]
        assert day_row[2:7] == ["8:00", "9:00", "0:30", "8:30", "0:30"]
        assert day_row[7] == "Yes"

    def test_csv_summary_block(self):
        mv = MonthlyValue(
            year=2025, month=3, total_target_time=9600, total_net_time=9630,
            total_overtime=30, total_undertime=0, flextime_start=0, flextime_change=30,
            flextime_end=30, work_days=20, vacation_taken=1.5, sick_days=0, is_closed=True,
        )
        content = build_csv(2025, 3, [], mv)
        assert "Summary" in content
        assert "Vacation,1.5" in content
        assert "Status,closed" in content

    def test_print_html_escapes_employee_name(self):
        page = build_print_html(2025, 3, [], None, employee_name="<Erika>")
        assert "&lt;Erika&gt;" in page
        assert "Monthly Evaluation: March 2025" in page


# ═════════════════════════════════════════════════════════════════════
# Filters
# ═════════════════════════════════════════════════════════════════════


class TestFilters:

    def test_none_values_skipped(self):
        query = apply_filters(select(Employee), Employee, {"is_active": None})
        assert "WHERE" not in str(query)

    def test_range_suffixes(self):
        query = apply_filters(
            select(DailyValue), DailyValue,
            {"value_date__from": date(2025, 3, 1), "value_date__to": date(2025, 3, 31)},
        )
        sql = str(query)
        assert ">=" in sql and "<=" in sql

    def test_unknown_sort_field_ignored(self):
        query = apply_sorting(select(Employee), Employee, "-no_such_column")
        assert "ORDER BY" not in str(query)

    def test_sort_descending(self):
        query = apply_sorting(select(Employee), Employee, "-last_name")
        assert "DESC" in str(query)
