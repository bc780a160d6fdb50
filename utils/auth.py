"""
Bearer token check for admin and external API routes.

Tokens come from the API_TOKENS setting (comma separated).
"""

import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import structlog

from config import get_settings
from exceptions import UnauthorizedError, ServiceNotConfiguredError

logger = structlog.get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def token_is_valid(token: str, valid_tokens: list[str]) -> bool:
    """Constant-time comparison against every configured token."""
    return any(secrets.compare_digest(token, valid) for valid in valid_tokens)


async def require_api_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)
) -> str:
    """
    FastAPI dependency guarding protected routers.

    Raises:
        ServiceNotConfiguredError: No token configured (503)
        UnauthorizedError: Missing or wrong token (401)
    """
    valid_tokens = get_settings().api_token_list
    if not valid_tokens:
        logger.warning("api_tokens_not_configured")
        raise ServiceNotConfiguredError("API_TOKENS")

    if credentials is None or not token_is_valid(credentials.credentials, valid_tokens):
        logger.warning("api_token_rejected", has_token=credentials is not None)
        raise UnauthorizedError()

    return credentials.credentials
