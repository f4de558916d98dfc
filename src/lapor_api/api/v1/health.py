"""Service health and build information endpoints.

GET /health, GET /info. Mounted in every deployment regardless of which
router groups are enabled.
"""

import socket
from typing import Annotated

from fastapi import APIRouter, Depends

from lapor_api import __version__
from lapor_api.core.config import Settings, get_settings

health_router = APIRouter(tags=["health"])


@health_router.get("/health", status_code=200)
async def health_check() -> dict:
    """Health check endpoint (no authentication required)."""
    return {"status": "healthy"}


@health_router.get("/info", status_code=200)
async def info(
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict:
    """Return application version, environment, enabled services and host."""
    return {
        "version": __version__,
        "environment": settings.environment,
        "services": settings.enabled_service_list,
        "servedBy": socket.gethostname(),
    }
