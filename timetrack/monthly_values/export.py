"""Monthly evaluation export: CSV download and a printable HTML page."""

from __future__ import annotations

import csv
import html
import io
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from timetrack.common.timeutil import format_minutes, month_days
from timetrack.daily_values.models import DailyValue
from timetrack.monthly_values.models import MonthlyValue

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

CSV_HEADER = ["Date", "Day", "Target", "Gross", "Breaks", "Net", "Balance", "Errors"]


def export_filename(year: int, month: int, extension: str = "csv") -> str:
    return f"monthly-evaluation-{year:04d}-{month:02d}.{extension}"


def _rows(year: int, month: int, daily_values: Iterable[DailyValue]):
    by_date = {dv.value_date: dv for dv in daily_values}
    for day in month_days(year, month):
        yield day, by_date.get(day)


def _day_cells(day: date, dv: Optional[DailyValue]) -> list[str]:
    return [
        day.strftime("%d.%m"),
        _WEEKDAYS[day.weekday()],
        format_minutes(dv.target_time if dv else 0),
        format_minutes(dv.gross_time if dv else 0),
        format_minutes(dv.break_time if dv else 0),
        format_minutes(dv.net_time if dv else 0),
        format_minutes(dv.balance if dv else 0),
    ]


def _number(value: float) -> str:
    return f"{value:g}"


def build_csv(
    year: int,
    month: int,
    daily_values: Iterable[DailyValue],
    monthly_value: Optional[MonthlyValue] = None,
) -> str:
    """One row per calendar day, then a summary block when the month was evaluated."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for day, dv in _rows(year, month, daily_values):
        writer.writerow([*_day_cells(day, dv), "Yes" if dv is not None and dv.has_error else ""])

    if monthly_value is not None:
        writer.writerow([])
        writer.writerow(["Summary"])
        writer.writerow(["Total Target", format_minutes(monthly_value.total_target_time)])
        writer.writerow(["Total Net", format_minutes(monthly_value.total_net_time)])
        writer.writerow(["Balance", format_minutes(monthly_value.balance)])
        writer.writerow(["Work Days", monthly_value.work_days])
        writer.writerow(["Vacation", _number(monthly_value.vacation_taken)])
        writer.writerow(["Sick Days", monthly_value.sick_days])
        writer.writerow(["Status", "closed" if monthly_value.is_closed else "open"])
    return buffer.getvalue()


_PRINT_STYLE = """
body { font-family: Arial, sans-serif; padding: 20px; font-size: 12px; }
h1 { font-size: 18px; margin-bottom: 5px; }
.subtitle { color: #666; margin-bottom: 20px; }
table { width: 100%; border-collapse: collapse; margin-top: 15px; }
th, td { border: 1px solid #ddd; padding: 6px 8px; }
th { background: #f5f5f5; text-align: left; }
td { text-align: right; }
td:first-child, td:nth-child(2), td:last-child { text-align: left; }
.weekend { background: #f9f9f9; color: #888; }
.error { background: #fff0f0; }
.summary { display: flex; gap: 10px; }
.summary div { padding: 10px; background: #f5f5f5; border-radius: 4px; }
.footer { margin-top: 20px; font-size: 10px; color: #666; }
"""


def build_print_html(
    year: int,
    month: int,
    daily_values: Iterable[DailyValue],
    monthly_value: Optional[MonthlyValue] = None,
    employee_name: Optional[str] = None,
) -> str:
    """The CSV content as a standalone HTML document for print-to-PDF."""
    label = f"{_MONTHS[month - 1]} {year}"
    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset=\"utf-8\">",
        f"<title>Monthly Evaluation - {label}</title>",
        f"<style>{_PRINT_STYLE}</style>",
        "</head><body>",
        f"<h1>Monthly Evaluation: {label}</h1>",
    ]
    if employee_name:
        parts.append(f"<div class=\"subtitle\">Employee: {html.escape(employee_name)}</div>")

    if monthly_value is not None:
        summary = [
            ("Target Time", format_minutes(monthly_value.total_target_time)),
            ("Net Time", format_minutes(monthly_value.total_net_time)),
            ("Balance", format_minutes(monthly_value.balance)),
            ("Work Days", str(monthly_value.work_days)),
            ("Vacation", _number(monthly_value.vacation_taken)),
            ("Sick Days", str(monthly_value.sick_days)),
            ("Status", "Closed" if monthly_value.is_closed else "Open"),
        ]
        parts.append("<div class=\"summary\">")
        parts.extend(f"<div><small>{name}</small><br><b>{value}</b></div>" for name, value in summary)
        parts.append("</div>")

    parts.append("<table><thead><tr>")
    parts.extend(f"<th>{name}</th>" for name in [*CSV_HEADER[:-1], "Status"])
    parts.append("</tr></thead><tbody>")
    for day, dv in _rows(year, month, daily_values):
        classes = []
        if day.weekday() >= 5:
            classes.append("weekend")
        if dv is not None and dv.has_error:
            classes.append("error")
        status = "" if dv is None else ("Error" if dv.has_error else "OK")
        cells = "".join(f"<td>{cell}</td>" for cell in [*_day_cells(day, dv), status])
        parts.append(f"<tr class=\"{' '.join(classes)}\">{cells}</tr>")
    parts.append("</tbody></table>")

    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    parts.append(f"<div class=\"footer\">Generated: {generated}</div>")
    parts.append("</body></html>")
    return "\n".join(parts)
