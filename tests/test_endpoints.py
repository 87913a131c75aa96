"""
Integration tests for API endpoints using the SQLite store.
"""
from datetime import date

from jose import jwt

from habitloop import config


def _seed(client, *logs):
    for log in logs:
        r = client.post("/api/v1/logs", json=log)
        assert r.status_code == 200


class TestHealth:
    def test_health(self, client):
        r = client.get("/api/v1/health-check")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
        assert r.json()["storage"] == "sql"


class TestAuth:
    def test_default_user_without_header(self, client):
        _seed(client, {"log_date": "2025-03-01", "coffee": True})
        assert len(client.get("/api/v1/logs").json()) == 1

    def test_missing_header_without_default_user(self, client, monkeypatch):
        monkeypatch.setattr(config, "DEFAULT_USER_ID", "")
        r = client.get("/api/v1/logs")
        assert r.status_code == 401
        assert r.headers["WWW-Authenticate"] == "Bearer"

    def test_bearer_token(self, client, monkeypatch):
        monkeypatch.setattr(config, "SUPABASE_JWT_SECRET", "test-secret")
        token = jwt.encode({"sub": "user-42", "aud": "authenticated"}, "test-secret", algorithm="HS256")
        headers = {"Authorization": f"Bearer {token}"}

        r = client.post("/api/v1/logs", json={"log_date": "2025-03-01", "coffee": True}, headers=headers)
        assert r.json()["data"]["user_id"] == "user-42"
        # the default user sees nothing
        assert client.get("/api/v1/logs").json() == []

    def test_bad_token(self, client, monkeypatch):
        monkeypatch.setattr(config, "SUPABASE_JWT_SECRET", "test-secret")
        token = jwt.encode({"sub": "user-42", "aud": "authenticated"}, "wrong-secret", algorithm="HS256")
        r = client.get("/api/v1/logs", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401


class TestLogs:
    def test_upsert_same_date(self, client):
        _seed(
            client,
            {"log_date": "2025-03-01", "coffee": True, "dabs_count": 2},
            {"log_date": "2025-03-01", "coffee": False},
        )
        logs = client.get("/api/v1/logs").json()
        assert len(logs) == 1
        assert logs[0]["coffee"] is False
        assert logs[0]["dabs_count"] == 2

    def test_normalizes_times_and_workouts(self, client):
        r = client.post("/api/v1/logs", json={
            "log_date": "2025-03-01",
            "time_awake": "7:05 AM",
            "bed_time": "",
            "workout": ["chest", "  legs "],
        })
        data = r.json()["data"]
        assert data["time_awake"] == "07:05:00"
        assert data["bed_time"] is None
        assert data["workout"] == ["Chest", "Legs"]

    def test_long_text_cut_like_import(self, client):
        r = client.post("/api/v1/logs", json={
            "log_date": "2025-03-01",
            "dream": "x" * 600,
            "day_rating": "  good  ",
        })
        assert r.status_code == 200
        stored = client.get("/api/v1/logs/2025-03-01").json()
        assert stored["dream"] == "x" * 500 + "..."
        assert stored["day_rating"] == "good"

    def test_negative_count_rejected(self, client):
        r = client.post("/api/v1/logs", json={"log_date": "2025-03-01", "dabs_count": -1})
        assert r.status_code == 422

    def test_bad_date_rejected(self, client):
        r = client.post("/api/v1/logs", json={"log_date": "yesterday", "coffee": True})
        assert r.status_code == 422

    def test_get_by_date_and_latest(self, client):
        _seed(client, {"log_date": "2025-03-01", "coffee": True}, {"log_date": "2025-03-04", "coffee": False})
        assert client.get("/api/v1/logs/2025-03-01").json()["coffee"] is True
        assert client.get("/api/v1/logs/latest").json()["log_date"] == "2025-03-04"

    def test_latest_empty(self, client):
        r = client.get("/api/v1/logs/latest")
        assert r.status_code == 200
        assert r.json() is None

    def test_range(self, client):
        _seed(client, *[{"log_date": f"2025-03-{d:02d}", "coffee": True} for d in range(1, 6)])
        r = client.get("/api/v1/logs/range", params={"start": "2025-03-02", "end": "2025-03-03"})
        assert [l["log_date"] for l in r.json()] == ["2025-03-02", "2025-03-03"]

    def test_range_reversed(self, client):
        r = client.get("/api/v1/logs/range", params={"start": "2025-03-05", "end": "2025-03-01"})
        assert r.status_code == 400

    def test_page(self, client):
        _seed(client, *[{"log_date": f"2025-03-{d:02d}", "coffee": True} for d in range(1, 6)])
        body = client.get("/api/v1/logs/page", params={"page": 1, "page_size": 2}).json()
        assert [l["log_date"] for l in body["data"]] == ["2025-03-05", "2025-03-04"]
        assert body["total_count"] == 5
        assert body["total_pages"] == 3

    def test_summary(self, client):
        _seed(client, {"log_date": date.today().isoformat(), "coffee": True, "water_bottles_count": 6})
        body = client.get("/api/v1/logs/summary", params={"days": 7}).json()
        assert body["total_days"] == 1
        assert body["coffee_count"] == 1
        assert body["avg_water_bottles"] == 6

    def test_clear_requires_confirm(self, client):
        _seed(client, {"log_date": "2025-03-01", "coffee": True})
        assert client.delete("/api/v1/logs").status_code == 400
        r = client.delete("/api/v1/logs", params={"confirm": "true"})
        assert r.json() == {"status": "success", "deleted": 1}
        assert client.get("/api/v1/logs").json() == []


class TestImport:
    def test_csv_upload(self, client):
        csv = b"Date,Coffee,# of Dabs\n3/1/2025,Yes,2\n3/2/2025,No,1\n,Yes,1\n"
        r = client.post("/api/v1/import/csv", files={"file": ("habits.csv", csv, "text/csv")})
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["imported"] == 2
        assert body["skipped"] == 1
        assert client.get("/api/v1/logs/2025-03-01").json()["dabs_count"] == 2

    def test_wrong_extension(self, client):
        r = client.post("/api/v1/import/csv", files={"file": ("habits.txt", b"a,b\n", "text/plain")})
        assert r.status_code == 400

    def test_json_import(self, client):
        r = client.post("/api/v1/import/json", json=[
            {"Date": "2025-03-01", "Coffee": "yes"},
            {"log_date": "2025-03-02", "coffee": False},
        ])
        assert r.json()["imported"] == 2
        assert client.get("/api/v1/logs/2025-03-02").json()["coffee"] is False

    def test_json_import_empty(self, client):
        assert client.post("/api/v1/import/json", json=[]).status_code == 422


class TestAnalytics:
    def test_monthly(self, client):
        _seed(client, {"log_date": "2025-10-05", "dabs_count": 3}, {"log_date": "2025-11-01", "dabs_count": 1})
        r = client.get("/api/v1/analytics/monthly", params={
            "field": "dabs_count", "months": 2, "reference": "2025-11-20",
        })
        assert r.status_code == 200
        charts = r.json()
        assert [c["month_range"]["label"] for c in charts] == ["November 2025", "October 2025"]
        assert charts[0]["total_value"] == 1
        assert charts[1]["daily_data"][4] == {"day": 5, "day_label": "5", "value": 3, "date": "2025-10-05"}

    def test_monthly_rejects_text_field(self, client):
        r = client.get("/api/v1/analytics/monthly", params={"field": "dream"})
        assert r.status_code == 422

    def test_yearly(self, client):
        _seed(client, {"log_date": "2024-01-02", "coffee": True}, {"log_date": "2024-01-03", "coffee": True})
        body = client.get("/api/v1/analytics/yearly", params={"field": "coffee"}).json()
        assert body["2024"]["January"] == 2

    def test_yearly_bad_how(self, client):
        r = client.get("/api/v1/analytics/yearly", params={"field": "coffee", "how": "median"})
        assert r.status_code == 422

    def test_habits(self, client):
        _seed(client, {"log_date": "2025-03-01", "coffee": True})
        body = client.get("/api/v1/analytics/habits").json()
        assert "Morning Habits" in body["habits"]
        assert "Morning Habits" in body["last_month"]
