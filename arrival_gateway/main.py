"""
Arrival Notifier main application.

Serves the single-page front-end and the WebSocket endpoint used by both
front-desk screens (observers) and recipient screens.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from arrival_gateway import __version__
from arrival_gateway.components.core.constants import DEFAULT_ALLOWED_ORIGINS
from arrival_gateway.components.endpoints.handlers import ArrivalEndpoint
from arrival_gateway.connection_manager import ConnectionManager
from arrival_shared.config.logging import get_logger, setup_logging
from arrival_shared.config.settings import Settings, get_settings
from arrival_shared.infrastructure.correlation import CorrelationIdMiddleware

logger = get_logger(__name__)

router = APIRouter()


def get_manager(app: FastAPI) -> ConnectionManager:
    return app.state.manager


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Configures logging on startup and closes every live connection on
    shutdown.
    """
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(
        "Starting Arrival Notifier",
        port=settings.port,
        env=settings.environment,
    )

    problems = settings.validate_production_settings()
    for problem in problems:
        logger.warning("Configuration problem", problem=problem)
    if problems and settings.environment == "production":
        raise RuntimeError(f"Invalid production configuration: {'; '.join(problems)}")

    yield

    logger.info("Shutting down Arrival Notifier")
    closed = await get_manager(app).shutdown()
    logger.info("Connections closed", count=closed)


# =============================================================================
# HTTP routes
# =============================================================================


@router.get("/", include_in_schema=False)
def index(request: Request):
    """Serve the front-end."""
    settings: Settings = request.app.state.settings
    page = settings.static_dir / "index.html"
    if not page.is_file():
        raise HTTPException(status_code=404, detail="Front-end not installed")
    return FileResponse(page, media_type="text/html")


@router.get("/ws/health")
def health_check(request: Request):
    """Basic health check endpoint."""
    settings: Settings = request.app.state.settings
    return {
        "status": "healthy",
        "service": "arrival-notifier",
        "version": request.app.version,
        "environment": settings.environment,
        **get_manager(request.app).get_stats(),
    }


# =============================================================================
# WebSocket endpoints
# =============================================================================


async def _serve(websocket: WebSocket, endpoint_name: str) -> None:
    settings: Settings = websocket.app.state.settings
    endpoint = ArrivalEndpoint(
        websocket,
        get_manager(websocket.app),
        endpoint_name=endpoint_name,
        max_message_size=settings.ws_max_message_size,
    )
    await endpoint.run()


@router.websocket("/")
async def root_websocket(websocket: WebSocket):
    """
    WebSocket endpoint on the page origin.

    The bundled front-end opens ``ws://<host>/``.
    """
    await _serve(websocket, "/")


@router.websocket("/ws")
async def arrival_websocket(websocket: WebSocket):
    """WebSocket endpoint for reverse proxies that route on a path prefix."""
    await _serve(websocket, "/ws")


# =============================================================================
# FastAPI Application
# =============================================================================


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application with its own ConnectionManager.

    Args:
        settings: Settings override (tests); defaults to the cached settings.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Arrival Notifier",
        description="Real-time client arrival notifications for front desk and practitioners",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.manager = ConnectionManager(send_queue_size=settings.ws_send_queue_size)

    allowed_origins = (
        [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
        if settings.allowed_origins
        else list(DEFAULT_ALLOWED_ORIGINS)
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", CorrelationIdMiddleware.HEADER_NAME],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "arrival_gateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug and settings.environment == "development",
    )


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    run()
