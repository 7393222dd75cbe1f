"""Supabase JWT verification for API routes."""

from typing import Annotated, Any

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from app.core.config import AppEnvironment, Settings
from app.core.errors import ErrorCode, ForensicsError

logger = structlog.get_logger(__name__)

INVALID_OR_EXPIRED_TOKEN_MSG = "Invalid or expired JWT token"

_optional_security = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """Authenticated user information."""

    user_id: str
    email: str | None = None
    role: str | None = None


def _auth_error(message: str) -> ForensicsError:
    return ForensicsError(ErrorCode.AUTH_FAILED, message, service="auth", operation="verify_token")


def verify_token(token: str, settings: Settings) -> dict[str, Any]:
    """Verify an HS256 Supabase access token and return its claims."""
    secret = settings.security.jwt_secret.get_secret_value()
    if not secret:
        raise _auth_error("JWT secret not configured")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=settings.security.algorithms_list,
            audience=settings.security.jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        raise _auth_error(INVALID_OR_EXPIRED_TOKEN_MSG) from None
    except JWTError as e:
        logger.warning("JWT verification failed", error=str(e))
        raise _auth_error(INVALID_OR_EXPIRED_TOKEN_MSG) from e


def _create_bypass_user() -> AuthenticatedUser:
    """Create mock user for local development."""
    return AuthenticatedUser(
        user_id="local-dev-user",
        email="local-dev@example.com",
        role="authenticated",
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_optional_security),
) -> AuthenticatedUser:
    """Extract and verify the bearer token, returning the authenticated user."""
    settings: Settings = request.app.state.settings

    if settings.security.skip_jwt_validation:
        if settings.app.env != AppEnvironment.LOCAL:
            logger.error("Refusing JWT bypass outside local environment", app_env=settings.app.env)
            raise _auth_error("JWT bypass is only allowed in local environment")
        return _create_bypass_user()

    if credentials is None:
        raise _auth_error("Missing authorization header")

    payload = verify_token(credentials.credentials, settings)
    return AuthenticatedUser(
        user_id=payload.get("sub", ""),
        email=payload.get("email"),
        role=payload.get("role"),
    )


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
