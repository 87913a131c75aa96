from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from habitloop.auth import get_current_user
from habitloop.services.daily_log_service import get_log_service
from habitloop.services.field_normalizer import field_kind
from habitloop.services.habit_summary import last_month_summary, summarize_habits
from habitloop.services.monthly_chart import aggregate_by_year_month, compute_monthly_chart_data, get_target_months

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


def _chart_kind(field: str) -> str:
    kind = field_kind(field)
    if kind not in ("boolean", "number"):
        raise HTTPException(status_code=422, detail=f"'{field}' cannot be charted")
    return kind


@router.get("/monthly")
async def monthly_chart(
    field: str,
    months: int = Query(3, ge=1, le=24),
    reference: Optional[date] = None,
    user_id: str = Depends(get_current_user),
    service=Depends(get_log_service),
):
    is_numeric = _chart_kind(field) == "number"
    targets = get_target_months(months, reference)
    logs = service.get_range(user_id, targets[-1].start_date, targets[0].end_date)
    charts = compute_monthly_chart_data(logs, field, is_numeric, months, reference)
    return [asdict(chart) for chart in charts]


@router.get("/yearly")
async def yearly_totals(
    field: str,
    how: str = Query("sum", pattern="^(sum|mean)$"),
    user_id: str = Depends(get_current_user),
    service=Depends(get_log_service),
):
    _chart_kind(field)
    return aggregate_by_year_month(service.get_all(user_id), field, how)


@router.get("/habits")
async def habit_overview(user_id: str = Depends(get_current_user), service=Depends(get_log_service)):
    logs = service.get_all(user_id)
    return {
        "habits": summarize_habits(logs),
        "last_month": last_month_summary(logs),
    }
