"""
Supabase Integration
Shared client for the Supabase data backend and token verification
"""
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from supabase import create_client, Client

from portfolio_dashboard.core.config import settings
from portfolio_dashboard.core.exceptions import DataAccessError

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Create the Supabase client once per process

    Raises:
        DataAccessError: SUPABASE_URL / SUPABASE_KEY are not configured or
            the client cannot be created
    """
    if not settings.supabase_configured:
        raise DataAccessError("Supabase credentials not configured")
    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        raise DataAccessError(f"Failed to initialize Supabase client: {e}") from e
    logger.info("Supabase client initialized successfully")
    return client


def get_user_from_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify an access token against Supabase Auth

    Args:
        token: JWT from the Authorization header

    Returns:
        Dict with id / email / role, or None if the token is rejected
    """
    try:
        response = get_supabase_client().auth.get_user(token)
    except DataAccessError:
        raise
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        return None

    user = getattr(response, "user", None)
    if user is None:
        return None
    return {
        "id": str(user.id),
        "email": getattr(user, "email", None),
        "role": getattr(user, "role", None),
    }
