from __future__ import annotations

from collections.abc import Callable, Sequence

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chatdock.errors import CsrfError, app_error_response
from chatdock.security.csrf import (
    ExemptionRule,
    configured_exemptions,
    issue_csrf_token,
    set_csrf_cookies,
    validate_csrf_request,
)


class CsrfMiddleware(BaseHTTPMiddleware):
    """
    Issue and validate double-submit CSRF tokens.
    - Issuing: a request without the canonical cookie gets a fresh token pair
      on whatever response it produces, rejections included.
    - Validation: unsafe methods under ``guarded_prefix`` must echo the
      cookie token in the header, unless an exemption rule matches.
    """

    def __init__(
        self,
        app,
        *,
        guarded_prefix: str = "/api",
        exemptions: Sequence[ExemptionRule] | None = None,
        issue: bool = True,
        validate: bool = True,
    ) -> None:
        super().__init__(app)
        self.guarded_prefix = guarded_prefix.rstrip("/")
        self.exemptions = (
            list(exemptions) if exemptions is not None else configured_exemptions()
        )
        self.issue = issue
        self.validate = validate

    def _is_guarded(self, path: str) -> bool:
        if not self.guarded_prefix:
            return True
        return path == self.guarded_prefix or path.startswith(
            self.guarded_prefix + "/"
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        token, issued = issue_csrf_token(request) if self.issue else (None, False)

        response: Response
        try:
            if self.validate and self._is_guarded(request.url.path):
                validate_csrf_request(request, self.exemptions)
        except CsrfError as exc:
            response = app_error_response(exc)
        else:
            response = await call_next(request)

        if issued and token:
            set_csrf_cookies(response, token)
        return response
