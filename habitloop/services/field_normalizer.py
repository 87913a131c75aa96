"""
field_normalizer.py — Spreadsheet headers and cells → Daily Log fields.

Headers are reduced to snake_case and looked up in a synonym table, so
"# of Bottles of Water Drank? " and "water bottles" both land on
`water_bottles_count`. Cells are coerced by the kind of field they belong
to; headers we do not know keep their normalized name and go through the
generic coercion.

Nothing in here raises on bad input. A cell that cannot be understood
becomes None and the caller decides whether the row is still worth keeping.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping

import pandas as pd


# ---------------------------------------------------------------------------
# Canonical fields
# ---------------------------------------------------------------------------

DATE_FIELD = "log_date"

BOOLEAN_FIELDS = (
    "coffee",
    "morning_walk",
    "breakfast",
    "green_tea",
    "alcohol",
    "smoke",
    "soda",
    "chocolate",
    "brushed_teeth_night",
    "washed_face_night",
    "netflix_in_bed",
    "phone_on_wake",
    "relaxed_today",
)

NUMERIC_FIELDS = (
    "dabs_count",
    "water_bottles_count",
    "pages_read_count",
    "weight_lbs",
    "calories",
)

TIME_FIELDS = ("time_awake", "bed_time")

LIST_FIELDS = ("workout",)

# field → (max length, append "..." when cut)
TEXT_FIELDS = {
    "day_rating": (100, False),
    "dream": (500, True),
    "latest_hype": (1000, True),
}

LOG_FIELDS = (
    (DATE_FIELD,)
    + BOOLEAN_FIELDS
    + NUMERIC_FIELDS
    + TIME_FIELDS
    + LIST_FIELDS
    + tuple(TEXT_FIELDS)
)

# normalized header → canonical field
HEADER_SYNONYMS = {
    "date": DATE_FIELD,
    "day_date": DATE_FIELD,
    "drink": "alcohol",
    "drinks": "alcohol",
    "drank": "alcohol",
    "smoked": "smoke",
    "drank_green_tea": "green_tea",
    "of_dabs": "dabs_count",
    "number_of_dabs": "dabs_count",
    "dabs": "dabs_count",
    "of_bottles_of_water_drank": "water_bottles_count",
    "bottles_of_water": "water_bottles_count",
    "water_bottles": "water_bottles_count",
    "number_of_pages_read": "pages_read_count",
    "pages_read": "pages_read_count",
    "brush_teeth_at_night": "brushed_teeth_night",
    "brushed_teeth": "brushed_teeth_night",
    "wash_face_at_night": "washed_face_night",
    "washed_face": "washed_face_night",
    "did_i_watch_netflix_in_bed_last_night": "netflix_in_bed",
    "watched_netflix_in_bed": "netflix_in_bed",
    "did_i_use_my_phone_for_social_media_30_mins_after_waking_up": "phone_on_wake",
    "phone_in_morning": "phone_on_wake",
    "phone_usage_in_first_30_min": "phone_on_wake",
    "relax": "relaxed_today",
    "relaxed": "relaxed_today",
    "weight_in_lbs": "weight_lbs",
    "weight": "weight_lbs",
    "of_calories": "calories",
    "how_was_my_day": "day_rating",
    "dream_i_had_last_night": "dream",
}

TRUE_TOKENS = {"yes", "true", "1"}
FALSE_TOKENS = {"no", "false", "0"}

_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]+")
_TIME_12H_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(AM|PM)$", re.IGNORECASE)
_TIME_24H_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(?:$|[T ])")


def field_kind(key: str) -> str:
    """'date', 'boolean', 'number', 'time', 'list', 'text' or 'unknown'."""
    if key == DATE_FIELD:
        return "date"
    if key in BOOLEAN_FIELDS:
        return "boolean"
    if key in NUMERIC_FIELDS:
        return "number"
    if key in TIME_FIELDS:
        return "time"
    if key in LIST_FIELDS:
        return "list"
    if key in TEXT_FIELDS:
        return "text"
    return "unknown"


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

def snake_case(header: str) -> str:
    text = _CAMEL_RE.sub(r"\1_\2", str(header))
    return _NON_ALNUM_RE.sub("_", text).strip("_").lower()


def normalize_header(header: str) -> str:
    """Canonical key for a column header; unknown headers come back snake_cased."""
    key = snake_case(header)
    return HEADER_SYNONYMS.get(key, key)


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, float) and math.isnan(raw):
        return True
    return isinstance(raw, str) and not raw.strip()


def to_number(raw: Any) -> int | float | None:
    if _is_blank(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        try:
            number = float(str(raw).strip().replace(",", ""))
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def to_bool(raw: Any) -> bool | None:
    if _is_blank(raw):
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw > 0
    lower = str(raw).strip().lower()
    if lower in TRUE_TOKENS:
        return True
    if lower in FALSE_TOKENS:
        return False
    return None


def coerce_value(raw: Any) -> bool | int | float | str | None:
    """Best-effort coercion for a cell whose field type is unknown."""
    if _is_blank(raw):
        return None
    if isinstance(raw, (bool, int, float)):
        return to_number(raw) if not isinstance(raw, bool) else raw
    flag = to_bool(raw)
    if flag is not None:
        return flag
    number = to_number(raw)
    if number is not None:
        return number
    return str(raw).strip()


def to_iso_date(raw: Any) -> str | None:
    """Any reasonable date spelling (3/15/2025, 2025-03-15, Mar 15 2025) → YYYY-MM-DD."""
    if _is_blank(raw):
        return None
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    text = str(raw).strip()
    if _ISO_DATE_RE.match(text):
        try:
            return date.fromisoformat(text[:10]).isoformat()
        except ValueError:
            return None
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date().isoformat()


def to_24h_time(raw: Any) -> str | None:
    """'7:30:00 PM' → '19:30:00'; unrecognised text is kept, cut to 20 chars."""
    if _is_blank(raw):
        return None
    cleaned = str(raw).strip()

    match = _TIME_12H_RE.match(cleaned)
    if match:
        hours, minutes, seconds, meridiem = match.groups()
        hours = int(hours)
        if hours <= 12:
            if meridiem.upper() == "PM" and hours != 12:
                hours += 12
            if meridiem.upper() == "AM" and hours == 12:
                hours = 0
            return f"{hours:02d}:{minutes}:{seconds or '00'}"

    match = _TIME_24H_RE.match(cleaned)
    if match:
        hours, minutes, seconds = match.groups()
        if int(hours) < 24:
            return f"{int(hours):02d}:{minutes}:{seconds or '00'}"

    return cleaned[:20]


def to_workout_list(raw: Any) -> list[str] | None:
    """'ran, legs,  abs' → ['Ran', 'Legs', 'Abs']; 'No' / 'No workout' → []."""
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw]
    else:
        if _is_blank(raw):
            return None
        cleaned = str(raw).strip()
        if cleaned.lower() in ("no", "no workout"):
            return []
        items = cleaned.split(",")

    workouts = []
    for item in items:
        name = " ".join(item.split())
        if name:
            workouts.append(name[0].upper() + name[1:].lower())
    return workouts


def clean_text(raw: Any, limit: int, ellipsis: bool = False) -> str | None:
    if _is_blank(raw):
        return None
    cleaned = str(raw).strip()
    if len(cleaned) > limit:
        cleaned = cleaned[:limit] + ("..." if ellipsis else "")
    return cleaned


def coerce_field(key: str, raw: Any) -> Any:
    """Coerce a cell according to the canonical field it belongs to."""
    kind = field_kind(key)
    if kind == "date":
        return to_iso_date(raw)
    if kind == "boolean":
        return to_bool(raw)
    if kind == "number":
        number = to_number(raw)
        # counts and measurements are never negative
        return number if number is not None and number >= 0 else None
    if kind == "time":
        return to_24h_time(raw)
    if kind == "list":
        return to_workout_list(raw)
    if kind == "text":
        limit, ellipsis = TEXT_FIELDS[key]
        return clean_text(raw, limit, ellipsis)
    return coerce_value(raw)


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

@dataclass
class NormalizedRow:
    values: dict[str, Any] = field(default_factory=dict)
    unmapped: list[str] = field(default_factory=list)


def normalize_row(row: Mapping[str, Any]) -> NormalizedRow:
    """Normalize every header and coerce every cell of one spreadsheet row.

    Blank cells are dropped. When two headers land on the same key the first
    non-blank value is kept.
    """
    result = NormalizedRow()
    for header, raw in row.items():
        if header is None:
            continue
        key = normalize_header(header)
        if not key:
            continue
        if key not in LOG_FIELDS and key not in result.unmapped:
            result.unmapped.append(key)

        value = coerce_field(key, raw)
        if value is None or key in result.values:
            continue
        result.values[key] = value
    return result


def has_habit_data(record: Mapping[str, Any]) -> bool:
    return any(key != DATE_FIELD and value is not None for key, value in record.items())


def to_log_record(row: Mapping[str, Any]) -> dict | None:
    """A row ready to persist: known fields only, dated, with at least one habit value."""
    values = normalize_row(row).values
    record = {key: value for key, value in values.items() if key in LOG_FIELDS}
    if not record.get(DATE_FIELD):
        return None
    if not has_habit_data(record):
        return None
    return record
