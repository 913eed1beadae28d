"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ai_photobooth.api.admin import router as admin_router
from ai_photobooth.api.kiosk import router as kiosk_router
from ai_photobooth.app_logging import configure_logging
from ai_photobooth.containers import AppContainer
from ai_photobooth.domain.errors import (
    ConceptNotFound,
    HardwareUnavailable,
    InvalidTransition,
    KioskError,
    NotAuthenticated,
    StoreUnreachable,
    Unauthorized,
)

_ERROR_STATUS: dict[type[KioskError], int] = {
    InvalidTransition: status.HTTP_409_CONFLICT,
    ConceptNotFound: status.HTTP_404_NOT_FOUND,
    NotAuthenticated: status.HTTP_403_FORBIDDEN,
    HardwareUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    StoreUnreachable: status.HTTP_502_BAD_GATEWAY,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        if not await state_container.configuration.reload():
            logger.warning("Starting with default kiosk settings")
        if not state_container.generation_service.available:
            logger.critical("Image generation credential missing")
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(kiosk_router)
    app.include_router(admin_router)

    async def kiosk_error_handler(request: Request, exc: Exception) -> JSONResponse:
        status_code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    for error_type in _ERROR_STATUS:
        app.add_exception_handler(error_type, kiosk_error_handler)

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Simple health check endpoint."""
        return {
            "status": "ok",
            "generation_available": container.generation_service.available,
        }

    return app
