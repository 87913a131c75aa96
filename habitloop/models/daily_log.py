from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Float, Text, Date, DateTime, Boolean, JSON, UniqueConstraint,
)
from habitloop.database import Base


class DailyLog(Base):
    __tablename__ = "daily_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)  # hosted auth user uuid
    log_date = Column(Date, nullable=False)

    # Morning
    time_awake = Column(String(20), nullable=True)  # HH:MM:SS
    coffee = Column(Boolean, nullable=True)
    morning_walk = Column(Boolean, nullable=True)
    breakfast = Column(Boolean, nullable=True)
    phone_on_wake = Column(Boolean, nullable=True)

    # Intake
    water_bottles_count = Column(Float, nullable=True)
    soda = Column(Boolean, nullable=True)
    alcohol = Column(Boolean, nullable=True)
    dabs_count = Column(Float, nullable=True)
    smoke = Column(Boolean, nullable=True)
    green_tea = Column(Boolean, nullable=True)
    chocolate = Column(Boolean, nullable=True)

    # Night
    bed_time = Column(String(20), nullable=True)
    netflix_in_bed = Column(Boolean, nullable=True)
    brushed_teeth_night = Column(Boolean, nullable=True)
    washed_face_night = Column(Boolean, nullable=True)

    # Fitness & wellness
    workout = Column(JSON, nullable=True)  # ["Chest", "Abs"]
    calories = Column(Float, nullable=True)
    weight_lbs = Column(Float, nullable=True)
    pages_read_count = Column(Float, nullable=True)
    relaxed_today = Column(Boolean, nullable=True)
    day_rating = Column(String(100), nullable=True)
    dream = Column(Text, nullable=True)
    latest_hype = Column(Text, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "log_date", name="daily_logs_user_id_log_date_key"),
    )

    def to_dict(self) -> dict:
        """Row as the hosted REST API would return it (ISO dates, plain numbers)."""
        row = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if column.name == "log_date" and value is not None:
                value = value.isoformat()
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, float) and value.is_integer():
                value = int(value)
            row[column.name] = value
        return row
