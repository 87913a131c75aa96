import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habitloop.config import APP_NAME, CORS_ORIGINS, LOG_LEVEL
from habitloop.database import init_db
from habitloop.errors import HabitLoopError, habitloop_exception_handler
from habitloop.routes.analytics_routes import router as analytics_router
from habitloop.routes.daily_log_routes import router as daily_log_router
from habitloop.routes.import_routes import router as import_router
from habitloop.supabase_client import is_supabase_configured

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Tables for the SQL fallback store
try:
    init_db()
except Exception as e:
    logger.warning("Database init skipped or failed: %s", e)

app = FastAPI(title=APP_NAME)


@app.get("/api/v1/health-check")
async def health():
    return {
        "status": "ok",
        "message": "Backend is alive!",
        "storage": "supabase" if is_supabase_configured() else "sql",
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(HabitLoopError, habitloop_exception_handler)

app.include_router(daily_log_router)
app.include_router(import_router)
app.include_router(analytics_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("habitloop.main:app", host="0.0.0.0", port=8000, reload=True)
