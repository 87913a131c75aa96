"""
Shared pytest fixtures.

Uses a throwaway SQLite file so neither the hosted database nor Postgres is
required for tests. Supabase settings are blanked so every request goes
through the SQL store.
"""
import os

os.environ["DATABASE_URL"] = "sqlite:///./test_habitloop.db"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""
os.environ["SUPABASE_JWT_SECRET"] = ""
os.environ["DEFAULT_USER_ID"] = "test-user"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from habitloop.database import Base, engine, get_db
from habitloop.main import app
from habitloop.services.daily_log_service import SqlDailyLogService

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def sql_service(db):
    return SqlDailyLogService(db)


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class FakeLogService:
    """In-memory stand-in for the daily log services used by the importer."""

    def __init__(self, fail_batches=()):
        self.rows = {}
        self.batches = []
        self.fail_batches = set(fail_batches)

    def upsert_many(self, user_id, records):
        from habitloop.errors import DatabaseError

        self.batches.append(records)
        if len(self.batches) in self.fail_batches:
            raise DatabaseError("violates check constraint \"dabs_count\"", db_code="23514")
        for record in records:
            self.rows[(user_id, record["log_date"])] = dict(record)
        return len(records)


@pytest.fixture()
def fake_service():
    return FakeLogService()
