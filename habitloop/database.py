import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from habitloop.config import DATABASE_URL

logger = logging.getLogger(__name__)


def engine_options(url: str) -> dict:
    """SQLite needs cross-thread access for FastAPI; Postgres gets a small pool."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_size": 5, "max_overflow": 10, "pool_timeout": 30, "pool_recycle": 1800}


engine = create_engine(DATABASE_URL, echo=False, **engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency — one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the daily_logs table, and the folder of a relative SQLite file."""
    if DATABASE_URL.startswith("sqlite:///"):
        folder = os.path.dirname(DATABASE_URL[len("sqlite:///"):])
        if folder:
            os.makedirs(folder, exist_ok=True)

    # registers the model with Base.metadata
    from habitloop.models.daily_log import DailyLog  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized at %s", engine.url.render_as_string(hide_password=True))
