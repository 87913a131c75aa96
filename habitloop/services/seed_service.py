"""
seed_service.py — Random but plausible daily logs for development databases.
Values stay inside the hosted schema's check constraints.
"""
import random
from datetime import date, timedelta

DAY_RATINGS = ["Terrible", "Bad", "Okay", "Good", "Legendary"]
WORKOUTS = ["Chest", "Back", "Legs", "Shoulders", "Biceps", "Triceps", "Abs"]


def _chance(rng: random.Random, probability: float = 0.5) -> bool:
    return rng.random() < probability


def _clock(rng: random.Random, hour_min: int, hour_max: int) -> str:
    return f"{rng.randint(hour_min, hour_max):02d}:{rng.randint(0, 59):02d}:00"


def generate_seed_log(log_date: date, rng: random.Random) -> dict:
    return {
        "log_date": log_date.isoformat(),
        "time_awake": _clock(rng, 5, 8),
        "bed_time": _clock(rng, 21, 23),
        "day_rating": rng.choice(DAY_RATINGS),
        "weight_lbs": round(rng.uniform(150, 160), 1),
        "calories": rng.randint(1800, 2500),
        "coffee": _chance(rng),
        "water_bottles_count": rng.randint(1, 10),
        "pages_read_count": rng.randint(0, 50),
        "dabs_count": rng.randint(0, 6),
        "soda": _chance(rng),
        "alcohol": _chance(rng),
        "phone_on_wake": _chance(rng),
        "breakfast": _chance(rng),
        "smoke": _chance(rng),
        "netflix_in_bed": _chance(rng),
        "brushed_teeth_night": _chance(rng, 0.8),
        "washed_face_night": _chance(rng, 0.8),
        "morning_walk": _chance(rng, 0.4),
        "green_tea": _chance(rng, 0.3),
        "chocolate": _chance(rng, 0.2),
        "workout": rng.sample(WORKOUTS, rng.randint(0, 2)),
        "relaxed_today": _chance(rng, 0.6),
    }


def generate_seed_logs(days: int = 30, end: date = None, rng: random.Random = None) -> list[dict]:
    """`days` consecutive logs ending at `end` (today by default), newest first."""
    end = end or date.today()
    rng = rng or random.Random()
    return [generate_seed_log(end - timedelta(days=offset), rng) for offset in range(days)]
