"""CSRF token retrieval for clients that cannot read the mirror cookie."""

from fastapi import APIRouter, Request

from chatdock.config import settings
from chatdock.security import limiter, read_csrf_token

router = APIRouter(prefix=settings.api_prefix, tags=["security"])


@router.get("/csrf-token", summary="Current CSRF token")
@limiter.limit(settings.csrf_token_rate_limit)
async def get_csrf_token(request: Request) -> dict[str, str]:
    """Echo the token from the HttpOnly cookie.

    Returns 400 ``CSRF_TOKEN_NOT_FOUND`` until a prior response has issued
    the cookie pair.
    """
    return {"csrfToken": read_csrf_token(request)}
