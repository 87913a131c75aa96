# supabase_client.py — official client for the hosted auth service
#
# Table reads and writes go through supabase_rest; this module only resolves
# who a user is.

import logging

from supabase import create_client, Client

from habitloop import config
from habitloop.errors import ConfigurationError, NotAuthenticatedError

logger = logging.getLogger(__name__)

# key name → client, created on first use
_clients: dict[str, Client] = {}


def _get_client(key_name: str) -> Client:
    if key_name not in _clients:
        key = getattr(config, key_name)
        if not config.SUPABASE_URL or not key:
            raise ConfigurationError(f"SUPABASE_URL and {key_name} must be set in environment variables")
        _clients[key_name] = create_client(config.SUPABASE_URL, key)
    return _clients[key_name]


def is_supabase_configured() -> bool:
    """Check whether the hosted database can be reached over REST."""
    return bool(config.SUPABASE_URL and config.SUPABASE_SERVICE_ROLE_KEY)


def sign_in_user(email: str, password: str) -> str:
    """Sign in with email + password (anon key) and return the user's id."""
    supabase = _get_client("SUPABASE_ANON_KEY")
    try:
        response = supabase.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        raise NotAuthenticatedError(f"Failed to authenticate {email}: {e}") from e
    if response.user is None:
        raise NotAuthenticatedError(f"Failed to authenticate {email}")
    logger.info("Authenticated as user %s", response.user.id)
    return response.user.id


def get_user_id_from_token(access_token: str) -> str:
    """Ask the auth service who owns an access token."""
    supabase = _get_client("SUPABASE_SERVICE_ROLE_KEY")
    try:
        response = supabase.auth.get_user(access_token)
    except Exception as e:
        raise NotAuthenticatedError("Invalid or expired token") from e
    if response is None or response.user is None:
        raise NotAuthenticatedError("Invalid or expired token")
    return response.user.id
