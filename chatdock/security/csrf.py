"""Double-submit-cookie CSRF protection.

The canonical token lives in an HttpOnly ``__Host-`` cookie. A second,
script-readable cookie mirrors the same value so the front end can echo it
back in the ``X-CSRF-Token`` header. Unsafe requests are accepted only when
header and cookie carry identical tokens.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from fastapi import Request, Response

from chatdock.config import settings
from chatdock.errors import (
    CsrfError,
    CsrfTokenInvalid,
    CsrfTokenMissing,
    CsrfTokenNotFound,
)
from chatdock.observability.metrics import CSRF_REJECTIONS

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = settings.csrf_cookie_name
CSRF_READABLE_COOKIE_NAME = settings.csrf_readable_cookie_name
CSRF_HEADER_NAME = settings.csrf_header_name

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


@dataclass(frozen=True)
class ExemptionRule:
    """Skip validation for ``methods`` (empty means any) under ``prefix``."""

    prefix: str
    methods: frozenset[str] = frozenset()
    reason: str = ""

    def matches(self, method: str, path: str) -> bool:
        if self.methods and method.upper() not in self.methods:
            return False
        return path.startswith(self.prefix)


def default_exemptions(api_prefix: str = "/api") -> list[ExemptionRule]:
    webhook = "provider-signed webhook"
    widget = "public widget endpoint"
    return [
        ExemptionRule(f"{api_prefix}/webhooks/", reason=webhook),
        ExemptionRule(f"{api_prefix}/paddle/webhook", reason=webhook),
        ExemptionRule(f"{api_prefix}/stripe/webhook", reason=webhook),
        ExemptionRule(f"{api_prefix}/chat/widget", reason=widget),
        ExemptionRule(f"{api_prefix}/feedback", reason=widget),
        ExemptionRule(f"{api_prefix}/analytics/widget/track", reason=widget),
    ]


def configured_exemptions() -> list[ExemptionRule]:
    rules = default_exemptions(settings.api_prefix)
    rules.extend(
        ExemptionRule(prefix, reason="configured") for prefix in settings.csrf_exempt_paths
    )
    return rules


def match_exemption(
    method: str, path: str, rules: Iterable[ExemptionRule]
) -> ExemptionRule | None:
    for rule in rules:
        if rule.matches(method, path):
            return rule
    return None


def generate_csrf_token(nbytes: int | None = None) -> str:
    return secrets.token_urlsafe(nbytes or settings.csrf_token_bytes)


def get_cookie_token(request: Request) -> str | None:
    return request.cookies.get(CSRF_COOKIE_NAME) or None


def get_header_token(request: Request) -> str | None:
    return request.headers.get(CSRF_HEADER_NAME) or None


def issue_csrf_token(request: Request) -> tuple[str, bool]:
    """Return the request's token and whether it was minted just now.

    The result is cached on ``request.state`` so every caller within one
    request sees the same value.
    """
    cached: tuple[str, bool] | None = getattr(request.state, "csrf_issue", None)
    if cached:
        return cached
    existing = get_cookie_token(request)
    result = (existing, False) if existing else (generate_csrf_token(), True)
    request.state.csrf_issue = result
    request.state.csrf_token = result[0]
    if result[1]:
        logger.debug(
            "CSRF token generated",
            extra={"path": request.url.path, "token_prefix": result[0][:8]},
        )
    return result


def set_csrf_cookies(response: Response, token: str) -> None:
    """Write the canonical cookie and its readable mirror with one value."""
    secure = settings.csrf_secure_cookies
    max_age = settings.csrf_cookie_max_age
    response.set_cookie(
        CSRF_COOKIE_NAME,
        token,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=True,
        samesite="strict",
    )
    response.set_cookie(
        CSRF_READABLE_COOKIE_NAME,
        token,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=False,
        samesite="strict",
    )


def tokens_match(cookie_token: str, header_token: str) -> bool:
    return hmac.compare_digest(
        cookie_token.encode("utf-8"), header_token.encode("utf-8")
    )


def _reject(request: Request, exc: CsrfError, reason: str) -> CsrfError:
    CSRF_REJECTIONS.labels(exc.code).inc()
    logger.warning(
        "CSRF validation failed: %s",
        reason,
        extra={
            "path": request.url.path,
            "method": request.method,
            "client": request.client.host if request.client else None,
        },
    )
    return exc


def validate_csrf_request(
    request: Request, exemptions: Sequence[ExemptionRule] | None = None
) -> None:
    """Raise a ``CsrfError`` unless the request may proceed."""
    method = request.method.upper()
    if method in SAFE_METHODS:
        return
    path = request.url.path
    rule = match_exemption(
        method, path, configured_exemptions() if exemptions is None else exemptions
    )
    if rule is not None:
        logger.debug(
            "Skipping CSRF validation",
            extra={"path": path, "rule": rule.prefix, "reason": rule.reason},
        )
        return

    cookie_token = get_cookie_token(request)
    if not cookie_token:
        raise _reject(
            request, CsrfTokenMissing("CSRF token missing in cookie"), "no cookie token"
        )
    header_token = get_header_token(request)
    if not header_token:
        raise _reject(
            request,
            CsrfTokenMissing("CSRF token missing in request header"),
            "no header token",
        )
    if not tokens_match(cookie_token, header_token):
        raise _reject(request, CsrfTokenInvalid(), "token mismatch")


def read_csrf_token(request: Request) -> str:
    """Return the token held in the canonical cookie."""
    token = get_cookie_token(request)
    if not token:
        raise CsrfTokenNotFound()
    return token


async def require_csrf(request: Request) -> None:
    """Route dependency for unsafe endpoints outside the guarded prefix."""
    validate_csrf_request(request)
