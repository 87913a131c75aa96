"""
Tests for the SQL-backed daily log store.
"""
from datetime import date, timedelta

import pytest

from habitloop.services.daily_log_service import page_meta, summarize_logs


class TestUpsert:
    def test_insert_then_update(self, sql_service):
        sql_service.upsert("u1", {"log_date": "2025-03-01", "coffee": True, "dabs_count": 2})
        updated = sql_service.upsert("u1", {"log_date": date(2025, 3, 1), "coffee": False})
        assert updated["coffee"] is False
        assert updated["dabs_count"] == 2
        assert sql_service.count("u1") == 1

    def test_unknown_columns_dropped(self, sql_service):
        row = sql_service.upsert("u1", {"log_date": "2025-03-01", "coffee": True, "mood": "great"})
        assert "mood" not in row

    def test_log_date_required(self, sql_service):
        with pytest.raises(ValueError):
            sql_service.upsert("u1", {"coffee": True})

    def test_upsert_many_repeated_date(self, sql_service):
        written = sql_service.upsert_many("u1", [
            {"log_date": "2025-03-01", "coffee": True},
            {"log_date": "2025-03-02", "coffee": True},
            {"log_date": "2025-03-01", "coffee": False},
        ])
        assert written == 3
        assert sql_service.count("u1") == 2
        assert sql_service.get("u1", "2025-03-01")["coffee"] is False

    def test_users_are_isolated(self, sql_service):
        sql_service.upsert("u1", {"log_date": "2025-03-01", "coffee": True})
        sql_service.upsert("u2", {"log_date": "2025-03-01", "coffee": False})
        assert sql_service.get("u1", "2025-03-01")["coffee"] is True
        assert sql_service.get("u2", "2025-03-01")["coffee"] is False

    def test_workout_round_trips(self, sql_service):
        sql_service.upsert("u1", {"log_date": "2025-03-01", "workout": ["Chest", "Abs"]})
        assert sql_service.get("u1", "2025-03-01")["workout"] == ["Chest", "Abs"]


class TestQueries:
    @pytest.fixture(autouse=True)
    def _history(self, sql_service):
        sql_service.upsert_many("u1", [
            {"log_date": f"2025-03-{day:02d}", "coffee": day % 2 == 0, "water_bottles_count": day}
            for day in range(1, 11)
        ])

    def test_latest(self, sql_service):
        assert sql_service.get_latest("u1")["log_date"] == "2025-03-10"
        assert sql_service.get_latest("nobody") is None

    def test_all_oldest_first(self, sql_service):
        dates = [r["log_date"] for r in sql_service.get_all("u1")]
        assert dates[0] == "2025-03-01"
        assert dates[-1] == "2025-03-10"

    def test_range_inclusive(self, sql_service):
        rows = sql_service.get_range("u1", "2025-03-03", "2025-03-05")
        assert [r["log_date"] for r in rows] == ["2025-03-03", "2025-03-04", "2025-03-05"]

    def test_page(self, sql_service):
        page = sql_service.get_page("u1", page=2, page_size=4)
        assert [r["log_date"] for r in page["data"]] == ["2025-03-06", "2025-03-05", "2025-03-04", "2025-03-03"]
        assert page["total_count"] == 10
        assert page["total_pages"] == 3
        assert page["has_more"] is True

    def test_last_page(self, sql_service):
        page = sql_service.get_page("u1", page=3, page_size=4)
        assert len(page["data"]) == 2
        assert page["has_more"] is False

    def test_page_open_ended_ranges(self, sql_service):
        after = sql_service.get_page("u1", start="2025-03-08")
        assert after["total_count"] == 3
        assert [r["log_date"] for r in after["data"]] == ["2025-03-10", "2025-03-09", "2025-03-08"]
        before = sql_service.get_page("u1", end="2025-03-02")
        assert before["total_count"] == 2

    def test_clear(self, sql_service):
        assert sql_service.clear("u1") == 10
        assert sql_service.get_all("u1") == []


class TestSummary:
    def test_recent_window(self, sql_service):
        today = date.today()
        sql_service.upsert_many("u1", [
            {"log_date": today - timedelta(days=1), "coffee": True, "water_bottles_count": 4, "weight_lbs": 150},
            {"log_date": today - timedelta(days=2), "coffee": False, "water_bottles_count": 2},
            {"log_date": today - timedelta(days=90), "coffee": True},
        ])
        summary = sql_service.get_summary("u1", days=30)
        assert summary["total_days"] == 2
        assert summary["coffee_count"] == 1
        assert summary["avg_water_bottles"] == 3
        assert summary["avg_weight"] == 150

    def test_summarize_empty(self):
        summary = summarize_logs([])
        assert summary["total_days"] == 0
        assert summary["avg_pages_read"] == 0

    def test_page_meta_empty(self):
        assert page_meta([], 0, 1, 30) == {
            "data": [],
            "total_count": 0,
            "has_more": False,
            "current_page": 1,
            "total_pages": 0,
        }
