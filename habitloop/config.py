import os
from dotenv import load_dotenv

load_dotenv()

# --- Supabase Configuration ---
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

# --- JWT Configuration ---
# Supabase signs user access tokens with the project's JWT secret (HS256)
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

# User for requests without a token (local store only) and CLI runs without --user
DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "")

# --- Database ---
# Local SQLite unless the hosted service (or a direct Postgres URL) is configured
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/habitloop.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

DAILY_LOGS_TABLE = os.getenv("DAILY_LOGS_TABLE", "daily_logs")

# --- Import / HTTP ---
IMPORT_BATCH_SIZE = int(os.getenv("IMPORT_BATCH_SIZE", "25"))
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))

# --- App ---
APP_NAME = os.getenv("APP_NAME", "HabitLoop")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
