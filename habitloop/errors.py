"""
errors.py — Application exceptions and database error translation.

Every error carries a machine-readable `code` so API clients can branch on
it, and database failures additionally carry a message fit to show a user.
Failures are reported, never retried.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


class HabitLoopError(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ConfigurationError(HabitLoopError):
    code = "NOT_CONFIGURED"


class NotAuthenticatedError(HabitLoopError):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "NOT_AUTHENTICATED"


class LogNotFoundError(HabitLoopError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "LOG_NOT_FOUND"

    def __init__(self, log_date: str):
        super().__init__(
            message=f"No daily log found for {log_date}.",
            details={"log_date": log_date},
        )


class ImportFormatError(HabitLoopError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "IMPORT_FORMAT_ERROR"


class DatabaseError(HabitLoopError):
    """A failed call to the database, with a user-facing explanation."""
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "DATABASE_ERROR"

    def __init__(
        self,
        message: str,
        db_code: str = "UNKNOWN_ERROR",
        user_message: str | None = None,
        http_status: int | None = None,
    ):
        self.db_code = db_code
        self.user_message = user_message or describe_database_error(db_code, message)
        if http_status is not None:
            self.http_status = http_status
        super().__init__(
            message=message,
            details={"db_code": db_code, "user_message": self.user_message},
        )


# ---------------------------------------------------------------------------
# Code → user message
# ---------------------------------------------------------------------------

_CHECK_CONSTRAINT_MESSAGES = [
    ("day_rating_valid_values", "Please select a valid day rating."),
    ("dabs_count", "Dabs count must be between 0 and 6."),
    ("water_bottles_count", "Water bottles count must be between 1 and 10."),
    ("weight_reasonable", "Please enter a reasonable weight (50-1000 lbs)."),
    ("calories_reasonable", "Please enter a reasonable calorie count (500-10000)."),
    ("log_date_not_future", "Cannot create logs for future dates."),
    ("dream_length_limit", "Dream description is too long (max 1000 characters)."),
    ("latest_hype_length_limit", "Latest hype text is too long (max 500 characters)."),
]

_CODE_MESSAGES = {
    "PGRST301": "You need to be logged in to perform this action.",
    "PGRST116": "No data found or you don't have permission to access this data.",
    "23503": "Referenced data no longer exists. Please refresh and try again.",
    "PGRST000": "Database is temporarily unavailable. Please try again in a moment.",
    "PGRST503": "Database is temporarily unavailable. Please try again in a moment.",
    "429": "Too many requests. Please wait a moment before trying again.",
}

DEFAULT_USER_MESSAGE = "An unexpected error occurred. Please try again."


def describe_database_error(db_code: str, message: str) -> str:
    """Map a PostgREST / Postgres error code (and message) to a user message."""
    message = message or ""

    if db_code == "23505":
        if "daily_logs_user_id_log_date_key" in message:
            return "A log entry already exists for this date. Try updating instead."
        return "This record already exists."

    if db_code == "23514":
        for constraint, text in _CHECK_CONSTRAINT_MESSAGES:
            if constraint in message:
                return text
        return "The data you entered doesn't meet the requirements."

    if db_code in _CODE_MESSAGES:
        return _CODE_MESSAGES[db_code]

    if "JWT" in message:
        return "Your session has expired. Please log in again."
    if "timeout" in message.lower():
        return "The request timed out. Please try again."
    if "network" in message.lower():
        return "Network error. Please check your connection and try again."
    return DEFAULT_USER_MESSAGE


def log_database_error(error: DatabaseError, context: str) -> None:
    logger.error(
        "Database error in %s: code=%s message=%s user_message=%s",
        context, error.db_code, error.message, error.user_message,
    )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def habitloop_exception_handler(request: Request, exc: HabitLoopError) -> JSONResponse:
    if isinstance(exc, DatabaseError):
        log_database_error(exc, f"{request.method} {request.url.path}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())
