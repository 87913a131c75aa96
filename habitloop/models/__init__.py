# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from habitloop.models.daily_log import DailyLog

__all__ = [
    "DailyLog",
]
