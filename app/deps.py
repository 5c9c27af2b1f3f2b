"""Shared FastAPI dependencies."""

from fastapi import Request

from app.core.config import get_settings
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import tokens_match

ADMIN_TOKEN_HEADER = "X-Admin-Token"


async def require_admin_token(request: Request) -> None:
    """Dependency: the admin extension must present the configured API token."""
    expected = get_settings().admin_api_token
    if not expected:
        raise ForbiddenError("Admin API disabled")
    supplied = request.headers.get(ADMIN_TOKEN_HEADER)
    if not supplied:
        raise UnauthorizedError("Not authenticated")
    if not tokens_match(supplied, expected):
        raise UnauthorizedError("Invalid admin token")
