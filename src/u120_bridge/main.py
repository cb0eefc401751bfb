"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from u120_bridge import __version__
from u120_bridge.api.connections import ConnectionHub
from u120_bridge.api.dependencies import app_state
from u120_bridge.api.gateway import BridgeGateway
from u120_bridge.api.routes import router as api_router
from u120_bridge.api.socket_routes import router as socket_router
from u120_bridge.core.config import Settings, setup_logging
from u120_bridge.core.models import HealthResponse
from u120_bridge.serial.session import SessionManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = app_state.settings or Settings()
    app_state.settings = settings

    setup_logging(settings.log_level)
    logger.info(f"Starting U120 Bridge v{__version__}")

    app_state.manager = SessionManager(
        close_timeout=settings.close_timeout,
        max_frame_size=settings.max_frame_size,
        known_units=settings.known_units,
    )
    app_state.hub = ConnectionHub()
    app_state.gateway = BridgeGateway(
        app_state.manager,
        app_state.hub,
        broadcast_events=settings.broadcast_events,
    )
    if settings.broadcast_events:
        logger.info("Session events are broadcast to all clients")

    yield

    # Shutdown
    logger.info("Shutting down bridge server...")
    if app_state.manager is not None:
        await app_state.manager.stop_reading()


app = FastAPI(
    title="U120 Bridge",
    description="Local bridge between a U120 Smart analyzer and UI clients",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router)
app.include_router(socket_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "U120 Bridge",
        "version": __version__,
        "status": "running",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    manager = app_state.manager
    hub = app_state.hub

    if manager is None or hub is None:
        return HealthResponse(
            status="unhealthy",
            session_state="idle",
            port=None,
            clients=0,
            last_record_available=False,
        )

    config = manager.active_config
    return HealthResponse(
        status="healthy" if manager.is_open else "idle",
        session_state=manager.state,
        port=config.port if config is not None else None,
        clients=hub.count,
        last_record_available=manager.last_record is not None,
    )


def main():
    """Run the application (for CLI entry point)."""
    import uvicorn

    settings = Settings()
    setup_logging(settings.log_level)
    app_state.settings = settings

    logger.info("U120 Bridge listening on ws://%s:%d", settings.api_host, settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
