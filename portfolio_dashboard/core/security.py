"""
Security and Authentication
Verifies Supabase access tokens for FastAPI routes
"""
from fastapi import HTTPException, status
from starlette.requests import Request
from jose import JWTError, jwt
import logging

from portfolio_dashboard.core.config import settings
from portfolio_dashboard.schemas.auth import AuthenticatedUser
from portfolio_dashboard.services.supabase_client import get_user_from_token

logger = logging.getLogger(__name__)

LOCAL_USER = AuthenticatedUser(id="local", email="local@localhost", role="authenticated")


def extract_token(request: Request) -> str:
    """Bearer token from the Authorization header, 401 if absent or malformed."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = auth_header[len("Bearer "):].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


def decode_access_token(token: str) -> AuthenticatedUser:
    """
    Verify a Supabase JWT locally with the project's JWT secret

    Raises:
        JWTError: bad signature, wrong audience, expired, or no subject
    """
    payload = jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
    )
    user_id = payload.get("sub")
    if not user_id:
        raise JWTError("Token missing 'sub' claim")
    return AuthenticatedUser(id=str(user_id), email=payload.get("email"), role=payload.get("role"))


def get_current_user(request: Request) -> AuthenticatedUser:
    """
    Get current user from the bearer token

    With SUPABASE_JWT_SECRET set the token is checked locally, otherwise
    it is sent to Supabase Auth.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if not settings.AUTH_ENABLED:
        return LOCAL_USER

    token = extract_token(request)

    if settings.SUPABASE_JWT_SECRET:
        try:
            return decode_access_token(token)
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )

    supabase_user = get_user_from_token(token)
    if not supabase_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthenticatedUser(**supabase_user)
