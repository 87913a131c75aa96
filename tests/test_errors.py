"""
Tests for error handling: exception classes, database error translation
and structured error responses.
"""
import pytest

from habitloop.errors import (
    DEFAULT_USER_MESSAGE,
    DatabaseError,
    ImportFormatError,
    LogNotFoundError,
    describe_database_error,
)


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_log_not_found(self):
        err = LogNotFoundError("2025-03-01")
        assert err.http_status == 404
        assert err.code == "LOG_NOT_FOUND"
        assert "2025-03-01" in err.message
        assert err.to_dict()["details"] == {"log_date": "2025-03-01"}

    def test_import_format_error(self):
        err = ImportFormatError("No data found in CSV")
        assert err.http_status == 422
        assert err.to_dict() == {"code": "IMPORT_FORMAT_ERROR", "message": "No data found in CSV"}

    def test_database_error(self):
        err = DatabaseError("JWT expired", db_code="PGRST301")
        assert err.http_status == 502
        assert err.code == "DATABASE_ERROR"
        assert err.user_message == "You need to be logged in to perform this action."
        assert err.to_dict()["details"]["db_code"] == "PGRST301"

    def test_database_error_overrides(self):
        err = DatabaseError("boom", user_message="Custom", http_status=503)
        assert err.user_message == "Custom"
        assert err.http_status == 503
        assert DatabaseError.http_status == 502


# ---------------------------------------------------------------------------
# Code → user message
# ---------------------------------------------------------------------------

class TestDescribeDatabaseError:
    def test_unique_violation(self):
        assert describe_database_error("23505", "daily_logs_user_id_log_date_key") == (
            "A log entry already exists for this date. Try updating instead."
        )
        assert describe_database_error("23505", "other_key") == "This record already exists."

    @pytest.mark.parametrize("constraint, expected", [
        ("dabs_count", "Dabs count must be between 0 and 6."),
        ("water_bottles_count", "Water bottles count must be between 1 and 10."),
        ("log_date_not_future", "Cannot create logs for future dates."),
        ("something_else", "The data you entered doesn't meet the requirements."),
    ])
    def test_check_violation(self, constraint, expected):
        message = f'new row violates check constraint "{constraint}"'
        assert describe_database_error("23514", message) == expected

    def test_fixed_codes(self):
        assert describe_database_error("429", "") == "Too many requests. Please wait a moment before trying again."
        assert "temporarily unavailable" in describe_database_error("PGRST000", "")

    def test_message_patterns(self):
        assert describe_database_error("X", "JWT expired") == "Your session has expired. Please log in again."
        assert describe_database_error("X", "Network down") == (
            "Network error. Please check your connection and try again."
        )

    def test_fallback(self):
        assert describe_database_error("X", None) == DEFAULT_USER_MESSAGE


# ---------------------------------------------------------------------------
# Integration: structured error responses
# ---------------------------------------------------------------------------

class TestErrorResponses:
    def test_missing_log_returns_404(self, client):
        r = client.get("/api/v1/logs/2025-03-01")
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "LOG_NOT_FOUND"
        assert body["details"]["log_date"] == "2025-03-01"

    def test_database_error_returns_502(self, client):
        from habitloop.main import app
        from habitloop.services.daily_log_service import get_log_service

        class Broken:
            def get_all(self, user_id):
                raise DatabaseError("connection reset", db_code="PGRST000")

        app.dependency_overrides[get_log_service] = lambda: Broken()
        r = client.get("/api/v1/logs")
        assert r.status_code == 502
        body = r.json()
        assert body["code"] == "DATABASE_ERROR"
        assert body["details"]["db_code"] == "PGRST000"
        assert "temporarily unavailable" in body["details"]["user_message"]

    def test_empty_csv_returns_422(self, client):
        r = client.post("/api/v1/import/csv", files={"file": ("habits.csv", b"", "text/csv")})
        assert r.status_code == 422
        assert r.json()["code"] == "IMPORT_FORMAT_ERROR"
