import io
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from habitloop.auth import get_current_user
from habitloop.errors import ImportFormatError
from habitloop.services.csv_import import import_csv, import_rows
from habitloop.services.daily_log_service import get_log_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/import", tags=["Import"])


@router.post("/csv")
async def upload_csv(
    file: UploadFile = File(...),
    batch_size: Optional[int] = Query(None, ge=1, le=1000),
    user_id: str = Depends(get_current_user),
    service=Depends(get_log_service),
):
    if file.filename and not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a .csv file")

    content = await file.read()
    if not content.strip():
        raise ImportFormatError("No data found in CSV")

    logger.info("CSV upload %s (%d bytes) for user %s", file.filename, len(content), user_id)
    result = import_csv(io.BytesIO(content), user_id, service, batch_size=batch_size)
    return result.to_dict()


@router.post("/json")
async def upload_json(
    records: List[Dict[str, Any]],
    batch_size: Optional[int] = Query(None, ge=1, le=1000),
    user_id: str = Depends(get_current_user),
    service=Depends(get_log_service),
):
    """Rows as exported by other tools, keyed by column header or database column."""
    if not records:
        raise ImportFormatError("No records to import")
    result = import_rows(records, user_id, service, batch_size=batch_size)
    return result.to_dict()
