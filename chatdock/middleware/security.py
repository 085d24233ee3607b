from __future__ import annotations

from collections.abc import Callable
from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# Third-party origins the dashboard and checkout flows load from.
CLERK = "https://*.clerk.accounts.dev"
PADDLE_CHECKOUT = ("https://buy.paddle.com", "https://sandbox-buy.paddle.com")
PADDLE_API = ("https://api.paddle.com", "https://sandbox-api.paddle.com")
TURNSTILE = "https://challenges.cloudflare.com"


def build_csp_directives(*, development: bool = False) -> list[str]:
    script_src = [
        "'self'",
        "'unsafe-inline'",
        "https://js.stripe.com",
        "https://cdn.paddle.com",
        CLERK,
        TURNSTILE,
    ]
    connect_src = [
        "'self'",
        "https://api.stripe.com",
        *PADDLE_API,
        "https://*.sentry.io",
        CLERK,
        "https://clerk.accounts.dev",
    ]
    if development:
        script_src.append("'unsafe-eval'")
        connect_src.extend(["ws://localhost:5000", "ws://localhost:*"])
    return [
        "default-src 'self'",
        "script-src " + " ".join(script_src),
        "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com",
        "img-src 'self' data: https: blob:",
        "connect-src " + " ".join(connect_src),
        "frame-src 'self' https://js.stripe.com "
        + " ".join(PADDLE_CHECKOUT)
        + f" {CLERK} {TURNSTILE}",
        "font-src 'self' data: https://fonts.gstatic.com https://fonts.googleapis.com",
        "object-src 'none'",
        "media-src 'self'",
        "worker-src 'self' blob:",
        "child-src 'none'",
        "form-action 'self'",
        "frame-ancestors 'none'",
        "base-uri 'self'",
        "manifest-src 'self'",
    ]


def _is_secure_request(request: Request) -> bool:
    # Honor reverse proxy headers if present
    xf_proto = request.headers.get("x-forwarded-proto")
    if xf_proto:
        return "https" in xf_proto
    return request.url.scheme == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Sets hardened response headers for the API and dashboard.
    - CSP allowing the auth, billing and font providers
    - HSTS only over HTTPS
    - Clickjacking, sniffing and cross-domain policy lockdown
    Headers already set by a route are left alone.
    """

    def __init__(
        self,
        app,
        *,
        csp_directives: Iterable[str] | None = None,
        report_only: bool = False,
        hsts: str = "max-age=31536000; includeSubDomains; preload",
        referrer_policy: str = "strict-origin-when-cross-origin",
        frame_options: str = "DENY",
        skip_hsts_hosts: set[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.csp_value = "; ".join(csp_directives or build_csp_directives())
        self.report_only = report_only
        self.hsts = hsts
        self.referrer_policy = referrer_policy
        self.frame_options = frame_options
        self.skip_hsts_hosts = skip_hsts_hosts or {"localhost", "127.0.0.1"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        headers = response.headers

        csp_header = (
            "Content-Security-Policy-Report-Only"
            if self.report_only
            else "Content-Security-Policy"
        )
        headers.setdefault(csp_header, self.csp_value)

        if _is_secure_request(request) and (
            request.url.hostname not in self.skip_hsts_hosts
        ):
            headers.setdefault("Strict-Transport-Security", self.hsts)

        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", self.frame_options)
        headers.setdefault("Referrer-Policy", self.referrer_policy)
        headers.setdefault("X-DNS-Prefetch-Control", "off")
        headers.setdefault("X-Download-Options", "noopen")
        headers.setdefault("X-Permitted-Cross-Domain-Policies", "none")
        # Legacy XSS auditors do more harm than good; disable explicitly.
        headers.setdefault("X-XSS-Protection", "0")
        for leaky in ("Server", "X-Powered-By"):
            if leaky in headers:
                del headers[leaky]
        return response
