"""
supabase_rest.py — HTTP-based database client using Supabase's PostgREST API.
Row filters (eq / gte / lte), ordering, limit/offset, exact counts and
upsert-on-conflict, all over plain httpx.
"""
import logging

import httpx

from habitloop import config
from habitloop.errors import ConfigurationError, DatabaseError

logger = logging.getLogger(__name__)


def _headers(prefer: str = "return=representation") -> dict:
    key = config.SUPABASE_SERVICE_ROLE_KEY
    return {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Content-Type": "application/json",
        "Prefer": prefer,
    }


def _url(table: str) -> str:
    if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE_KEY:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment variables")
    return f"{config.SUPABASE_URL}/rest/v1/{table}"


def _client() -> httpx.Client:
    return httpx.Client(timeout=config.REQUEST_TIMEOUT)


def _params(
    filters: dict = None,
    gte: dict = None,
    lte: dict = None,
    order: str = None,
    limit: int = None,
    offset: int = None,
) -> list[tuple[str, str]]:
    params = []
    for key, value in (filters or {}).items():
        params.append((key, f"eq.{value}"))
    for key, value in (gte or {}).items():
        params.append((key, f"gte.{value}"))
    for key, value in (lte or {}).items():
        params.append((key, f"lte.{value}"))
    if order:
        params.append(("order", order))
    if limit is not None:
        params.append(("limit", str(limit)))
    if offset:
        params.append(("offset", str(offset)))
    return params


def _raise_for_status(resp: httpx.Response) -> None:
    """Turn a PostgREST error body ({code, message, details, hint}) into DatabaseError."""
    if resp.is_success:
        return
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    db_code = str(body.get("code") or resp.status_code)
    message = body.get("message") or resp.text or f"HTTP {resp.status_code}"
    if body.get("details"):
        message = f"{message} ({body['details']})"
    raise DatabaseError(message, db_code=db_code)


def _send(method: str, url: str, **kwargs) -> httpx.Response:
    try:
        with _client() as client:
            resp = client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise DatabaseError(f"Request timeout: {e}", db_code="TIMEOUT") from e
    except httpx.HTTPError as e:
        raise DatabaseError(f"network error: {e}", db_code="NETWORK_ERROR") from e
    _raise_for_status(resp)
    return resp


def _total_from_content_range(resp: httpx.Response) -> int:
    content_range = resp.headers.get("content-range", "*/0")
    total = content_range.split("/")[-1]
    return int(total) if total.isdigit() else 0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def sb_select(
    table: str,
    filters: dict = None,
    columns: str = "*",
    gte: dict = None,
    lte: dict = None,
    order: str = None,
    limit: int = None,
    offset: int = None,
) -> list:
    """Select rows with equality / range filters, e.g. order="log_date.desc"."""
    params = [("select", columns)] + _params(filters, gte, lte, order, limit, offset)
    resp = _send("GET", _url(table), params=params, headers=_headers())
    return resp.json()


def sb_select_page(
    table: str,
    filters: dict = None,
    columns: str = "*",
    gte: dict = None,
    lte: dict = None,
    order: str = None,
    limit: int = None,
    offset: int = None,
) -> tuple[list, int]:
    """Like sb_select, but also returns the exact number of matching rows."""
    params = [("select", columns)] + _params(filters, gte, lte, order, limit, offset)
    resp = _send("GET", _url(table), params=params, headers=_headers("count=exact"))
    return resp.json(), _total_from_content_range(resp)


def _union_columns(rows: list) -> str:
    columns = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return ",".join(columns)


def sb_upsert(table: str, data: dict | list, on_conflict: str) -> list:
    """Insert or update rows keyed on the `on_conflict` unique columns.

    PostgREST wants every object of a bulk body to have the same keys unless
    `columns` names them, so a list always sends the union of its keys.
    """
    params = [("on_conflict", on_conflict)]
    if isinstance(data, list):
        params.append(("columns", _union_columns(data)))
    headers = _headers("resolution=merge-duplicates,return=representation")
    resp = _send("POST", _url(table), params=params, json=data, headers=headers)
    return resp.json()


def sb_delete(table: str, filters: dict) -> int:
    """Delete rows matching all equality filters; returns the number removed."""
    if not filters:
        # PostgREST refuses unfiltered deletes anyway
        raise ValueError("sb_delete requires at least one filter")
    params = [("select", "id")] + _params(filters)
    resp = _send("DELETE", _url(table), params=params, headers=_headers())
    return len(resp.json())


def sb_count(table: str, filters: dict = None, gte: dict = None, lte: dict = None) -> int:
    """Count rows via a HEAD request and the Content-Range header."""
    params = [("select", "id")] + _params(filters, gte, lte)
    resp = _send("HEAD", _url(table), params=params, headers=_headers("count=exact"))
    return _total_from_content_range(resp)
