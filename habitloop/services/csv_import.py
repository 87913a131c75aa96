"""
csv_import.py — Spreadsheet export → Daily Log records → database.

Rows that cannot be turned into a dated record with at least one habit value
are skipped and counted, and a failed batch is recorded without stopping the
rest of the import. Nothing is retried.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Iterable, Mapping

import pandas as pd

from habitloop import config
from habitloop.errors import DatabaseError, ImportFormatError
from habitloop.services.field_normalizer import DATE_FIELD, normalize_row, to_log_record

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    total_rows: int = 0
    valid_rows: int = 0
    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    unmapped_headers: list[str] = field(default_factory=list)
    date_range: dict | None = None

    @property
    def success(self) -> bool:
        return self.imported > 0

    def to_dict(self) -> dict:
        return {"success": self.success, **asdict(self)}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _read_text(source) -> str:
    if hasattr(source, "read"):
        data = source.read()
    else:
        with open(source, "rb") as f:
            data = f.read()
    return data.decode("utf-8-sig") if isinstance(data, bytes) else data


def read_csv_rows(source) -> tuple[list[dict], int]:
    """Read a CSV path or file object into string rows.

    Returns (rows, malformed_line_count). Blank cells stay as "" and the
    first column is never used as an index. Extra trailing cells that are
    blank (a trailing comma) are dropped; lines with extra non-blank cells
    are skipped and counted.
    """
    bad_lines = []
    try:
        text = _read_text(source)
        width = len(pd.read_csv(io.StringIO(text), nrows=0, dtype=str).columns)

        def trim_or_skip(fields: list[str]) -> list[str] | None:
            if all(not str(cell).strip() for cell in fields[width:]):
                return fields[:width]
            bad_lines.append(fields)
            return None

        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
            on_bad_lines=trim_or_skip,
        )
    except pd.errors.EmptyDataError as e:
        raise ImportFormatError("No data found in CSV") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Could not parse CSV: {e}") from e

    if bad_lines:
        logger.warning("Skipped %d malformed CSV lines", len(bad_lines))
    logger.info("CSV headers found: %s", list(df.columns))
    return df.to_dict(orient="records"), len(bad_lines)


def transform_rows(rows: Iterable[Mapping[str, Any]]) -> tuple[list[dict], list[str], list[str]]:
    """Rows → (records, errors, unmapped headers). One record per date, last row wins."""
    by_date: dict[str, dict] = {}
    errors: list[str] = []
    unmapped: list[str] = []

    # spreadsheet row numbers start at 2, below the header
    for number, row in enumerate(rows, start=2):
        for key in normalize_row(row).unmapped:
            if key not in unmapped:
                unmapped.append(key)
        try:
            record = to_log_record(row)
        except Exception as e:
            logger.warning("Row %d could not be transformed: %s", number, e)
            errors.append(f"Row {number}: {e}")
            continue
        if record is None:
            errors.append(f"Row {number}: missing date or no habit data")
            continue
        if record[DATE_FIELD] in by_date:
            logger.info("Row %d replaces an earlier row for %s", number, record[DATE_FIELD])
        by_date[record[DATE_FIELD]] = record

    return list(by_date.values()), errors, unmapped


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def import_rows(
    rows: list[Mapping[str, Any]],
    user_id: str,
    service,
    batch_size: int = None,
    malformed_lines: int = 0,
) -> ImportResult:
    batch_size = batch_size or config.IMPORT_BATCH_SIZE
    result = ImportResult(total_rows=len(rows) + malformed_lines)

    records, errors, unmapped = transform_rows(rows)
    result.valid_rows = len(records)
    result.skipped = malformed_lines + (len(rows) - len(records))
    result.errors.extend(errors)
    result.unmapped_headers = unmapped
    logger.info("Transformed %d valid rows out of %d", len(records), result.total_rows)

    for start in range(0, len(records), batch_size):
        batch = records[start:start + batch_size]
        batch_number = start // batch_size + 1
        try:
            written = service.upsert_many(user_id, batch)
        except DatabaseError as e:
            logger.error("Batch %d failed: %s (%s)", batch_number, e.message, e.db_code)
            result.errors.append(f"Batch {batch_number}: {e.message} ({e.db_code})")
            continue
        result.imported += written
        logger.info("Batch %d: imported %d records", batch_number, written)

    if records:
        dates = sorted(r[DATE_FIELD] for r in records)
        result.date_range = {"earliest": dates[0], "latest": dates[-1]}
    return result


def import_csv(source, user_id: str, service, batch_size: int = None) -> ImportResult:
    """Parse, transform and upsert a spreadsheet export for one user."""
    rows, malformed = read_csv_rows(source)
    if not rows:
        raise ImportFormatError("No data found in CSV")
    logger.info("Processing %d CSV rows for user %s", len(rows), user_id)
    return import_rows(rows, user_id, service, batch_size, malformed_lines=malformed)


# ---------------------------------------------------------------------------
# Offline conversion
# ---------------------------------------------------------------------------

def convert_rows(rows: Iterable[Mapping[str, Any]]) -> list[dict]:
    """Rows → [{date, day, month, habits}] with every column kept, mapped or not."""
    documents = []
    for row in rows:
        values = dict(normalize_row(row).values)
        iso = values.pop(DATE_FIELD, None)
        values.pop("day", None)
        values.pop("month", None)
        parsed = date.fromisoformat(iso) if iso else None
        documents.append({
            "date": iso,
            "day": parsed.strftime("%A") if parsed else None,
            "month": parsed.strftime("%Y-%m") if parsed else None,
            "habits": values,
        })
    return documents


def convert_csv(source) -> list[dict]:
    rows, _ = read_csv_rows(source)
    return convert_rows(rows)


def documents_to_logs(documents: Iterable[Mapping[str, Any]]) -> list[dict]:
    """Converted documents back to flat log records for the chart and summary helpers."""
    return [{DATE_FIELD: doc.get("date"), **(doc.get("habits") or {})} for doc in documents]
