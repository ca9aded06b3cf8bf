# jobdispatch/transport/security.py
"""
Access control for operational endpoints and error sanitizing.

Driver-facing routes are expected to sit behind the platform's own
authentication gateway; only ``/metrics`` is guarded here.
"""
from __future__ import annotations

import hmac

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from jobdispatch.config import settings
from jobdispatch.infra.logging_config import get_logger

logger = get_logger(__name__)

metrics_bearer_scheme = HTTPBearer(
    scheme_name="Metrics Token",
    description="Enter your metrics token (without 'Bearer ' prefix)",
    auto_error=False,
)


def require_metrics_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(metrics_bearer_scheme),
) -> None:
    """
    Dependency for the metrics endpoint.

    - ``enable_metrics=False`` → 404
    - ``metrics_token`` set → Bearer token required
    - no token configured → open (a warning is printed at config load)
    """
    if not settings.enable_metrics:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    if not settings.metrics_token:
        return

    if credentials is None or not hmac.compare_digest(credentials.credentials, settings.metrics_token):
        logger.warning("Invalid metrics token attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def sanitize_error_message(error: Exception, is_production: bool) -> str:
    """Detailed message in dev, generic one in production."""
    if not is_production:
        return str(error)
    return "Internal server error"
