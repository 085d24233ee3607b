"""Security façade for CSRF, rate limiting, and headers middleware."""

from chatdock.middleware.security import SecurityHeadersMiddleware  # noqa: F401

from .csrf import (  # noqa: F401
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    CSRF_READABLE_COOKIE_NAME,
    ExemptionRule,
    issue_csrf_token,
    read_csrf_token,
    require_csrf,
    set_csrf_cookies,
    validate_csrf_request,
)
from .rate_limit import limiter  # noqa: F401

__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_HEADER_NAME",
    "CSRF_READABLE_COOKIE_NAME",
    "ExemptionRule",
    "issue_csrf_token",
    "read_csrf_token",
    "require_csrf",
    "set_csrf_cookies",
    "validate_csrf_request",
    "limiter",
    "SecurityHeadersMiddleware",
]
