"""
monthly_chart.py — Sparse daily logs → dense, chart-ready monthly series.

Every calendar day of the target month gets a data point. A day with no log,
a False flag or a non-positive number counts as 0. When the same date shows
up more than once, the record that comes last in the input wins.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping

from habitloop.services.field_normalizer import DATE_FIELD, to_iso_date

MONTH_NAMES = list(calendar.month_name)[1:]
SHORT_MONTH_NAMES = list(calendar.month_abbr)[1:]


@dataclass
class MonthRange:
    year: int
    month: int  # 1 = January
    start_date: date
    end_date: date
    label: str  # "November 2025"
    short_label: str  # "Nov 2025"
    days_in_month: int

    @classmethod
    def of(cls, year: int, month: int) -> "MonthRange":
        days = calendar.monthrange(year, month)[1]
        return cls(
            year=year,
            month=month,
            start_date=date(year, month, 1),
            end_date=date(year, month, days),
            label=f"{MONTH_NAMES[month - 1]} {year}",
            short_label=f"{SHORT_MONTH_NAMES[month - 1]} {year}",
            days_in_month=days,
        )


@dataclass
class DailyDataPoint:
    day: int
    day_label: str
    value: float
    date: str  # YYYY-MM-DD


@dataclass
class MonthlyChartData:
    month_range: MonthRange
    daily_data: list[DailyDataPoint] = field(default_factory=list)
    total_value: float = 0
    days_with_data: int = 0


def get_target_months(count: int = 3, reference: date | None = None) -> list[MonthRange]:
    """The `count` months ending at the reference month, newest first."""
    reference = reference or date.today()
    months = []
    year, month = reference.year, reference.month
    for _ in range(count):
        months.append(MonthRange.of(year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return months


def day_value(value: Any, is_numeric: bool) -> float:
    """Chart value of a single cell."""
    if is_numeric:
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return value
        return 0
    return 1 if value is True else 0


def _values_by_date(logs: Iterable[Mapping[str, Any]], column: str, is_numeric: bool) -> dict[str, float]:
    values = {}
    for log in logs:
        key = to_iso_date(log.get(DATE_FIELD))
        if key is None:
            continue
        values[key] = day_value(log.get(column), is_numeric)
    return values


def transform_logs_to_monthly_data(
    logs: Iterable[Mapping[str, Any]],
    month_range: MonthRange,
    column: str,
    is_numeric: bool = False,
) -> MonthlyChartData:
    values = _values_by_date(logs, column, is_numeric)

    chart = MonthlyChartData(month_range=month_range)
    for day in range(1, month_range.days_in_month + 1):
        key = date(month_range.year, month_range.month, day).isoformat()
        value = values.get(key, 0)
        chart.daily_data.append(DailyDataPoint(day=day, day_label=str(day), value=value, date=key))
        chart.total_value += value
        if value > 0:
            chart.days_with_data += 1
    return chart


def compute_monthly_chart_data(
    logs: Iterable[Mapping[str, Any]],
    column: str,
    is_numeric: bool = False,
    months: int = 3,
    reference: date | None = None,
) -> list[MonthlyChartData]:
    logs = list(logs)
    return [
        transform_logs_to_monthly_data(logs, month_range, column, is_numeric)
        for month_range in get_target_months(months, reference)
    ]


def aggregate_by_year_month(
    logs: Iterable[Mapping[str, Any]],
    column: str,
    how: str = "sum",
) -> dict[int, dict[str, float]]:
    """{year: {"January": value, ...}} with all twelve months for every year seen.

    "sum" adds numbers and counts True flags; "mean" averages positive numbers.
    """
    if how not in ("sum", "mean"):
        raise ValueError(f"Unsupported aggregation: {how}")

    totals: dict[int, dict[str, float]] = {}
    counts: dict[int, dict[str, int]] = {}
    for log in logs:
        key = to_iso_date(log.get(DATE_FIELD))
        if key is None:
            continue
        log_date = date.fromisoformat(key)
        year, name = log_date.year, MONTH_NAMES[log_date.month - 1]
        totals.setdefault(year, {m: 0 for m in MONTH_NAMES})
        counts.setdefault(year, {m: 0 for m in MONTH_NAMES})

        value = log.get(column)
        value = day_value(value, is_numeric=not isinstance(value, bool))
        if value > 0:
            totals[year][name] += value
            counts[year][name] += 1

    if how == "mean":
        for year, months in totals.items():
            for name, total in months.items():
                if counts[year][name]:
                    months[name] = total / counts[year][name]
    return totals
