"""Supabase access-token verification.

Tokens are issued by Supabase Auth; this service only verifies their HS256
signature and audience and reads the user id from the ``sub`` claim.
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from ....config.settings import Settings
from ....core.domain.exceptions import AuthenticationError, MissingAPIKeyError
from .deps import get_settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# HTTP Bearer security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


def verify_access_token(token: str, secret: str, audience: str) -> str:
    """Verify a Supabase access token and return its user id.

    Raises:
        AuthenticationError: If the token is invalid, expired or has no subject.
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM], audience=audience)
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        raise AuthenticationError("Invalid or expired access token", cause=e) from e

    user_id = claims.get("sub")
    if not user_id:
        raise AuthenticationError("Access token has no subject")
    return str(user_id)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """Resolve the authenticated user id from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    if not settings.supabase_jwt_secret:
        raise MissingAPIKeyError("SUPABASE_JWT_SECRET is not configured")
    return verify_access_token(
        credentials.credentials,
        settings.supabase_jwt_secret,
        settings.supabase_jwt_audience,
    )
