"""
FastAPI application - chatdock API
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from chatdock.config import settings
from chatdock.errors import register_error_handlers
from chatdock.middleware.csrf import CsrfMiddleware
from chatdock.middleware.security import (
    SecurityHeadersMiddleware,
    build_csp_directives,
)
from chatdock.observability import MetricsMiddleware, configure_logging
from chatdock.routers.csrf import router as csrf_router
from chatdock.routers.status import router as status_router
from chatdock.security import limiter

logger = logging.getLogger(__name__)

CORS_ALLOWED_HEADERS = [
    "Content-Type",
    "Authorization",
    "X-Requested-With",
    "X-Request-ID",
]
CORS_EXPOSED_HEADERS = [
    "X-Request-ID",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting chatdock API",
        extra={"environment": settings.environment, "version": settings.app_version},
    )
    yield
    logger.info("Shutting down chatdock API")


def create_app() -> FastAPI:
    """Assemble the API from the module-level ``settings``.

    Routers, cookie names and rate limits read the same singleton at import
    time, so there is no per-app configuration.
    """
    config = settings
    configure_logging(config.log_level)

    app = FastAPI(
        title="chatdock API",
        description="Chatbot platform API",
        version=config.app_version,
        lifespan=lifespan,
        docs_url=None if config.is_production else "/docs",
        redoc_url=None if config.is_production else "/redoc",
        openapi_url=None if config.is_production else "/openapi.json",
    )
    app.state.settings = config
    app.state.limiter = limiter

    # Added innermost first: slowapi -> CSRF -> CORS -> metrics -> headers -> request id
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(CsrfMiddleware, guarded_prefix=config.api_prefix)
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=[*CORS_ALLOWED_HEADERS, config.csrf_header_name],
            expose_headers=CORS_EXPOSED_HEADERS,
            max_age=600,
        )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        csp_directives=build_csp_directives(development=not config.is_production),
    )
    app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

    register_error_handlers(app)

    app.include_router(status_router)
    app.include_router(csrf_router)
    return app


app = create_app()
