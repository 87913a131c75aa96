"""
daily_log_service.py — Daily Log persistence.
One record per (user_id, log_date). Writes are upserts; the only delete is
the bulk clear of a user's history.

SqlDailyLogService talks to a SQLAlchemy session (local SQLite or a direct
Postgres URL), SupabaseDailyLogService to the hosted PostgREST endpoint.
Both return plain dicts shaped like REST rows.
"""
import logging
import math
from datetime import date, datetime, timedelta, timezone

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habitloop import config
from habitloop.database import get_db
from habitloop.errors import DatabaseError
from habitloop.models.daily_log import DailyLog
from habitloop.services.field_normalizer import DATE_FIELD, LOG_FIELDS
from habitloop.supabase_client import is_supabase_configured
from habitloop.supabase_rest import (
    sb_count, sb_delete, sb_select, sb_select_page, sb_upsert,
)

logger = logging.getLogger(__name__)

CONFLICT_COLUMNS = "user_id,log_date"


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _clean(data: dict) -> dict:
    """Known columns only, dates as ISO strings."""
    row = {k: v for k, v in data.items() if k in LOG_FIELDS}
    if DATE_FIELD not in row or row[DATE_FIELD] in (None, ""):
        raise ValueError("log_date is required")
    row[DATE_FIELD] = _as_date(row[DATE_FIELD]).isoformat()
    return row


def page_meta(rows: list, total: int, page: int, page_size: int) -> dict:
    offset = (page - 1) * page_size
    return {
        "data": rows,
        "total_count": total,
        "has_more": offset + page_size < total,
        "current_page": page,
        "total_pages": math.ceil(total / page_size) if total else 0,
    }


def summarize_logs(rows: list[dict]) -> dict:
    """Counts and averages behind the dashboard summary."""
    total = len(rows)

    def count(column):
        return sum(1 for r in rows if r.get(column))

    def average(column, present_only=False):
        values = [r.get(column) or 0 for r in rows if not present_only or r.get(column)]
        return sum(values) / len(values) if values else 0

    return {
        "total_days": total,
        "coffee_count": count("coffee"),
        "breakfast_count": count("breakfast"),
        "walk_count": count("morning_walk"),
        "relaxed_count": count("relaxed_today"),
        "avg_water_bottles": average("water_bottles_count"),
        "avg_pages_read": average("pages_read_count"),
        "avg_weight": average("weight_lbs", present_only=True),
    }


def _summary_start(days: int) -> date:
    return datetime.now(timezone.utc).date() - timedelta(days=days)


class SqlDailyLogService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self, user_id: str):
        return self.db.query(DailyLog).filter(DailyLog.user_id == user_id)

    def _fail(self, e: SQLAlchemyError, context: str):
        self.db.rollback()
        pgcode = getattr(getattr(e, "orig", None), "pgcode", None)
        error = DatabaseError(str(getattr(e, "orig", e)), db_code=pgcode or "UNKNOWN_ERROR")
        logger.error("Error %s: %s", context, error.message)
        raise error from e

    def _apply(self, user_id: str, row: dict) -> DailyLog:
        log_date = _as_date(row[DATE_FIELD])
        log = self._query(user_id).filter(DailyLog.log_date == log_date).first()
        if not log:
            log = DailyLog(user_id=user_id, log_date=log_date)
            self.db.add(log)
        for key, value in row.items():
            if key != DATE_FIELD:
                setattr(log, key, value)
        return log

    def upsert(self, user_id: str, data: dict) -> dict:
        row = _clean(data)
        try:
            log = self._apply(user_id, row)
            self.db.commit()
            self.db.refresh(log)
            return log.to_dict()
        except SQLAlchemyError as e:
            self._fail(e, "saving daily log")

    def upsert_many(self, user_id: str, records: list[dict]) -> int:
        rows = [_clean(r) for r in records]
        try:
            for row in rows:
                self._apply(user_id, row)
                # flush so a repeated date in the same batch finds the pending row
                self.db.flush()
            self.db.commit()
            return len(rows)
        except SQLAlchemyError as e:
            self._fail(e, "saving daily log batch")

    def get(self, user_id: str, log_date) -> dict | None:
        log = self._query(user_id).filter(DailyLog.log_date == _as_date(log_date)).first()
        return log.to_dict() if log else None

    def get_latest(self, user_id: str) -> dict | None:
        log = self._query(user_id).order_by(DailyLog.log_date.desc()).first()
        return log.to_dict() if log else None

    def get_all(self, user_id: str) -> list[dict]:
        return [l.to_dict() for l in self._query(user_id).order_by(DailyLog.log_date.asc()).all()]

    def get_range(self, user_id: str, start, end) -> list[dict]:
        logs = self._query(user_id).filter(
            DailyLog.log_date >= _as_date(start),
            DailyLog.log_date <= _as_date(end),
        ).order_by(DailyLog.log_date.asc()).all()
        return [l.to_dict() for l in logs]

    def get_page(self, user_id: str, page: int = 1, page_size: int = 30, start=None, end=None) -> dict:
        query = self._query(user_id)
        if start:
            query = query.filter(DailyLog.log_date >= _as_date(start))
        if end:
            query = query.filter(DailyLog.log_date <= _as_date(end))
        total = query.count()
        logs = query.order_by(DailyLog.log_date.desc()).offset((page - 1) * page_size).limit(page_size).all()
        return page_meta([l.to_dict() for l in logs], total, page, page_size)

    def get_summary(self, user_id: str, days: int = 30) -> dict:
        logs = self._query(user_id).filter(DailyLog.log_date >= _summary_start(days)).all()
        return summarize_logs([l.to_dict() for l in logs])

    def count(self, user_id: str) -> int:
        return self._query(user_id).count()

    def clear(self, user_id: str) -> int:
        try:
            deleted = self._query(user_id).delete(synchronize_session=False)
            self.db.commit()
            logger.info("Cleared %d daily logs for user %s", deleted, user_id)
            return deleted
        except SQLAlchemyError as e:
            self._fail(e, "clearing daily logs")


class SupabaseDailyLogService:
    def __init__(self, table: str = None):
        self.table = table or config.DAILY_LOGS_TABLE

    def upsert(self, user_id: str, data: dict) -> dict:
        row = {**_clean(data), "user_id": user_id}
        result = sb_upsert(self.table, row, on_conflict=CONFLICT_COLUMNS)
        return result[0] if result else row

    def upsert_many(self, user_id: str, records: list[dict]) -> int:
        rows = [{**_clean(r), "user_id": user_id} for r in records]
        if not rows:
            return 0
        result = sb_upsert(self.table, rows, on_conflict=CONFLICT_COLUMNS)
        return len(result) if result else len(rows)

    def get(self, user_id: str, log_date) -> dict | None:
        rows = sb_select(self.table, filters={"user_id": user_id, DATE_FIELD: _as_date(log_date).isoformat()})
        return rows[0] if rows else None

    def get_latest(self, user_id: str) -> dict | None:
        rows = sb_select(self.table, filters={"user_id": user_id}, order="log_date.desc", limit=1)
        return rows[0] if rows else None

    def get_all(self, user_id: str) -> list[dict]:
        return sb_select(self.table, filters={"user_id": user_id}, order="log_date.asc")

    def get_range(self, user_id: str, start, end) -> list[dict]:
        return sb_select(
            self.table,
            filters={"user_id": user_id},
            gte={DATE_FIELD: _as_date(start).isoformat()},
            lte={DATE_FIELD: _as_date(end).isoformat()},
            order="log_date.asc",
        )

    def get_page(self, user_id: str, page: int = 1, page_size: int = 30, start=None, end=None) -> dict:
        gte = {DATE_FIELD: _as_date(start).isoformat()} if start else None
        lte = {DATE_FIELD: _as_date(end).isoformat()} if end else None
        rows, total = sb_select_page(
            self.table,
            filters={"user_id": user_id},
            gte=gte,
            lte=lte,
            order="log_date.desc",
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return page_meta(rows, total, page, page_size)

    def get_summary(self, user_id: str, days: int = 30) -> dict:
        rows = sb_select(
            self.table,
            filters={"user_id": user_id},
            columns="coffee,breakfast,morning_walk,water_bottles_count,pages_read_count,relaxed_today,day_rating,weight_lbs",
            gte={DATE_FIELD: _summary_start(days).isoformat()},
            order="log_date.desc",
        )
        return summarize_logs(rows)

    def count(self, user_id: str) -> int:
        return sb_count(self.table, filters={"user_id": user_id})

    def clear(self, user_id: str) -> int:
        deleted = sb_delete(self.table, filters={"user_id": user_id})
        logger.info("Cleared %d daily logs for user %s", deleted, user_id)
        return deleted


def get_log_service(db: Session = Depends(get_db)):
    """FastAPI dependency — the hosted database when configured, else the SQL session."""
    if is_supabase_configured():
        return SupabaseDailyLogService()
    return SqlDailyLogService(db)
