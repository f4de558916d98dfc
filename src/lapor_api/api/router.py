"""Root API router and middleware registration."""

from fastapi import APIRouter, FastAPI

from lapor_api.api.middleware import SecurityHeadersMiddleware, ServedByMiddleware, setup_cors
from lapor_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with the enabled sub-routers included.

    The health router is always mounted; ``auth`` and ``laporan`` follow
    ``settings.enabled_services`` so each service can be deployed alone.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from lapor_api.api.v1.auth import router as auth_router
    from lapor_api.api.v1.health import health_router
    from lapor_api.api.v1.laporan import laporan_router

    enabled = settings.enabled_service_list
    root_router = APIRouter(prefix=settings.api_prefix)
    root_router.include_router(health_router)
    if "auth" in enabled:
        root_router.include_router(auth_router)
    if "laporan" in enabled:
        root_router.include_router(laporan_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(ServedByMiddleware)
