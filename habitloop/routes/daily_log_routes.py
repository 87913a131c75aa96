from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from habitloop.auth import get_current_user
from habitloop.errors import LogNotFoundError
from habitloop.services.daily_log_service import get_log_service
from habitloop.services.field_normalizer import TEXT_FIELDS, clean_text, to_24h_time, to_workout_list

router = APIRouter(prefix="/api/v1/logs", tags=["Daily Logs"])


class DailyLogIn(BaseModel):
    log_date: date
    time_awake: Optional[str] = None
    coffee: Optional[bool] = None
    morning_walk: Optional[bool] = None
    breakfast: Optional[bool] = None
    phone_on_wake: Optional[bool] = None
    water_bottles_count: Optional[float] = Field(None, ge=0)
    soda: Optional[bool] = None
    alcohol: Optional[bool] = None
    dabs_count: Optional[float] = Field(None, ge=0)
    smoke: Optional[bool] = None
    green_tea: Optional[bool] = None
    chocolate: Optional[bool] = None
    bed_time: Optional[str] = None
    netflix_in_bed: Optional[bool] = None
    brushed_teeth_night: Optional[bool] = None
    washed_face_night: Optional[bool] = None
    workout: Optional[list[str]] = None
    calories: Optional[float] = Field(None, ge=0)
    weight_lbs: Optional[float] = Field(None, ge=0)
    pages_read_count: Optional[float] = Field(None, ge=0)
    relaxed_today: Optional[bool] = None
    # cut to the same lengths as imported text
    day_rating: Optional[str] = None
    dream: Optional[str] = None
    latest_hype: Optional[str] = None

    def to_record(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        # empty form inputs arrive as "" and mean "not set"
        for key in ("time_awake", "bed_time"):
            if key in data:
                data[key] = to_24h_time(data[key])
        if data.get("workout") is not None:
            data["workout"] = to_workout_list(data["workout"])
        for key, (limit, ellipsis) in TEXT_FIELDS.items():
            if key in data:
                data[key] = clean_text(data[key], limit, ellipsis)
        return data


@router.get("")
async def list_logs(user_id: str = Depends(get_current_user), service=Depends(get_log_service)):
    return service.get_all(user_id)


@router.get("/latest")
async def latest_log(user_id: str = Depends(get_current_user), service=Depends(get_log_service)):
    return service.get_latest(user_id)


@router.get("/page")
async def page_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(30, ge=1, le=500),
    start: Optional[date] = None,
    end: Optional[date] = None,
    user_id: str = Depends(get_current_user),
    service=Depends(get_log_service),
):
    return service.get_page(user_id, page=page, page_size=page_size, start=start, end=end)


@router.get("/range")
async def range_logs(
    start: date,
    end: date,
    user_id: str = Depends(get_current_user),
    service=Depends(get_log_service),
):
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    return service.get_range(user_id, start, end)


@router.get("/summary")
async def logs_summary(
    days: int = Query(30, ge=1, le=3650),
    user_id: str = Depends(get_current_user),
    service=Depends(get_log_service),
):
    return service.get_summary(user_id, days=days)


@router.get("/{log_date}")
async def get_log(log_date: date, user_id: str = Depends(get_current_user), service=Depends(get_log_service)):
    log = service.get(user_id, log_date)
    if log is None:
        raise LogNotFoundError(log_date.isoformat())
    return log


@router.post("")
async def save_log(log_data: DailyLogIn, user_id: str = Depends(get_current_user), service=Depends(get_log_service)):
    result = service.upsert(user_id, log_data.to_record())
    return {"status": "success", "data": result}


@router.delete("")
async def clear_logs(
    confirm: bool = False,
    user_id: str = Depends(get_current_user),
    service=Depends(get_log_service),
):
    if not confirm:
        raise HTTPException(status_code=400, detail="Pass confirm=true to delete every log for this user")
    deleted = service.clear(user_id)
    return {"status": "success", "deleted": deleted}
