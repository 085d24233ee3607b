from __future__ import annotations

import secrets
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from chatdock.config import settings
from chatdock.observability.metrics import metrics_response

router = APIRouter(tags=["system"])
security = HTTPBasic(auto_error=False)


@router.get(f"{settings.api_prefix}/health", summary="Health check")
async def health_check() -> dict:
    payload = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if not settings.is_production:
        payload["version"] = settings.app_version
        payload["environment"] = settings.environment
    return payload


def verify_metrics_auth(
    credentials: HTTPBasicCredentials | None = Depends(security),
) -> str | None:
    """Require HTTP Basic credentials once METRICS_PASSWORD is set."""
    if not settings.metrics_password:
        return credentials.username if credentials else None
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
    correct_username = secrets.compare_digest(
        credentials.username, settings.metrics_username
    )
    correct_password = secrets.compare_digest(
        credentials.password, settings.metrics_password
    )
    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


@router.get("/metrics", include_in_schema=False)
def metrics(_: str | None = Depends(verify_metrics_auth)):
    return metrics_response()
