"""
habit_summary.py — Per-habit totals, streaks and histories grouped by category.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping

from habitloop.services.field_normalizer import DATE_FIELD, field_kind, to_iso_date
from habitloop.services.monthly_chart import MonthRange, day_value, transform_logs_to_monthly_data

# habit → (category, display name); order is the display order
TRACKED_HABITS = {
    "pages_read_count": ("Key Habits", "Pages Read"),
    "netflix_in_bed": ("Key Habits", "Netflix in Bed"),
    "smoke": ("Key Habits", "Smoke"),
    "relaxed_today": ("Addictive Habits", "Relax?"),
    "dabs_count": ("Addictive Habits", "# of Dabs"),
    "alcohol": ("Addictive Habits", "Drink"),
    "phone_on_wake": ("Morning Habits", "Phone use in first 30 mins"),
    "breakfast": ("Morning Habits", "Breakfast"),
    "coffee": ("Morning Habits", "Coffee"),
    "brushed_teeth_night": ("Nighttime Habits", "Brush Teeth at Night"),
    "washed_face_night": ("Nighttime Habits", "Wash Face at Night"),
    "green_tea": ("Nighttime Habits", "Green Tea"),
    "water_bottles_count": ("Workout Habits", "Water Bottles"),
    "weight_lbs": ("Workout Habits", "Weight"),
    "morning_walk": ("New Habits", "Morning Walk"),
}


def is_numeric_habit(habit: str) -> bool:
    return field_kind(habit) == "number"


def default_value(habit: str) -> Any:
    return 0 if is_numeric_habit(habit) else False


def _chronological(logs: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    """One log per date, oldest first; a later duplicate replaces an earlier one."""
    by_date = {}
    for log in logs:
        key = to_iso_date(log.get(DATE_FIELD))
        if key is not None:
            by_date[key] = log
    return [by_date[key] for key in sorted(by_date)]


def trailing_streak(history: list, is_numeric: bool) -> int:
    streak = 0
    for value in reversed(history):
        if day_value(value, is_numeric) > 0:
            streak += 1
        else:
            break
    return streak


def summarize_habit(habit: str, logs: list[Mapping[str, Any]]) -> dict:
    numeric = is_numeric_habit(habit)
    history = []
    for log in logs:
        value = log.get(habit)
        history.append(default_value(habit) if value is None else value)

    total = sum(day_value(value, numeric) for value in history)
    latest = history[-1] if history else default_value(habit)
    return {
        "habit_name": TRACKED_HABITS.get(habit, (None, habit))[1],
        "total": total,
        "streak": trailing_streak(history, numeric),
        "history": history,
        "status": "Done" if day_value(latest, numeric) > 0 else "Missed",
    }


def summarize_habits(logs: Iterable[Mapping[str, Any]]) -> dict[str, list[dict]]:
    """{category: [habit summary, ...]} over every tracked habit."""
    ordered = _chronological(logs)
    by_category: dict[str, list[dict]] = {}
    for habit, (category, _) in TRACKED_HABITS.items():
        by_category.setdefault(category, []).append(summarize_habit(habit, ordered))
    return by_category


def last_month_summary(logs: Iterable[Mapping[str, Any]], reference: date | None = None) -> dict[str, list[dict]]:
    """Dense per-day values for the month before `reference`, grouped by category."""
    reference = reference or date.today()
    year, month = (reference.year - 1, 12) if reference.month == 1 else (reference.year, reference.month - 1)
    month_range = MonthRange.of(year, month)

    logs = list(logs)
    by_category: dict[str, list[dict]] = {}
    for habit, (category, display_name) in TRACKED_HABITS.items():
        chart = transform_logs_to_monthly_data(logs, month_range, habit, is_numeric_habit(habit))
        by_category.setdefault(category, []).append({
            "habit_name": display_name,
            "data": [point.value for point in chart.daily_data],
        })
    return by_category
