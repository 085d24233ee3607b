"""Error taxonomy and JSON exception handlers."""

from __future__ import annotations

import logging
from typing import Any

from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors rendered as ``{"message", "code"}`` bodies."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code}


class CsrfError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class CsrfTokenMissing(CsrfError):
    """Cookie or header token absent; the message says which."""

    code = "CSRF_TOKEN_MISSING"
    default_message = "CSRF token missing"


class CsrfTokenInvalid(CsrfError):
    code = "CSRF_TOKEN_INVALID"
    default_message = "Invalid CSRF token"


class CsrfTokenNotFound(CsrfError):
    """No token has been issued to this client yet."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "CSRF_TOKEN_NOT_FOUND"
    default_message = "No CSRF token found. Please refresh the page."


def app_error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def _with_request_id(body: dict[str, Any]) -> dict[str, Any]:
    request_id = correlation_id.get()
    if request_id:
        body["requestId"] = request_id
    return body


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            _with_request_id(exc.to_dict()), status_code=exc.status_code
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        body = {"message": message, "code": "HTTP_ERROR"}
        if not isinstance(exc.detail, str):
            body["details"] = exc.detail
        return JSONResponse(
            _with_request_id(body),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = {
            "message": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": exc.errors(),
        }
        return JSONResponse(
            _with_request_id(body), status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(
        request: Request, exc: RateLimitExceeded
    ) -> JSONResponse:
        body = {
            "message": "Too many requests. Please retry shortly.",
            "code": "RATE_LIMIT_EXCEEDED",
        }
        return JSONResponse(
            _with_request_id(body), status_code=status.HTTP_429_TOO_MANY_REQUESTS
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception(
            "Unhandled error",
            extra={"path": request.url.path, "method": request.method},
        )
        body = {"message": "An unexpected error occurred", "code": "INTERNAL_ERROR"}
        return JSONResponse(
            _with_request_id(body),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
