from fastapi import Request, HTTPException, status
from jose import jwt, JWTError

from habitloop import config
from habitloop.errors import NotAuthenticatedError
from habitloop.supabase_client import get_user_id_from_token, is_supabase_configured


def verify_token(token: str) -> dict | None:
    """Decode and verify a hosted-auth access token. Returns the payload or None on failure."""
    try:
        return jwt.decode(
            token,
            config.SUPABASE_JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            audience=config.JWT_AUDIENCE,
        )
    except JWTError:
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_user_id(token: str) -> str:
    """Local verification when the JWT secret is known, otherwise ask the auth service."""
    if config.SUPABASE_JWT_SECRET:
        payload = verify_token(token)
        if payload is None:
            raise _unauthorized("Invalid or expired token")
        user_id = payload.get("sub")
        if not user_id:
            raise _unauthorized("Token payload missing required claims")
        return user_id

    try:
        return get_user_id_from_token(token)
    except NotAuthenticatedError as e:
        raise _unauthorized(e.message) from e


async def get_current_user(request: Request) -> str:
    """
    FastAPI dependency — extracts the Bearer token from the Authorization
    header, verifies it, and returns the user id.
    Without a hosted database, requests fall back to DEFAULT_USER_ID.
    Raises HTTP 401 if the token is missing or invalid.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        if not is_supabase_configured() and config.DEFAULT_USER_ID:
            return config.DEFAULT_USER_ID
        raise _unauthorized("Missing or invalid Authorization header")

    token = auth_header.split(" ", 1)[1]
    return resolve_user_id(token)
