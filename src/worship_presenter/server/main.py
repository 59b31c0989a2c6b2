"""FastAPI application entry point for the relay server."""

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from .. import __version__
from .config import settings
from .rooms import RoomRegistry
from .routes import health, rooms
from .routes.rooms import set_registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan.

    Args:
        app: FastAPI application

    Yields:
        None
    """
    # Startup
    registry = RoomRegistry(pin_length=settings.PRESENTER_PIN_LENGTH)
    set_registry(registry)

    # Start idle room cleanup
    task = asyncio.create_task(
        registry.cleanup_loop(
            settings.PRESENTER_CLEANUP_INTERVAL_SECONDS,
            timedelta(minutes=settings.PRESENTER_ROOM_IDLE_MINUTES),
        )
    )

    yield

    # Shutdown
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    set_registry(None)


app = FastAPI(
    title="Worship Presenter Relay",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health.router, prefix="/api/v1")
app.include_router(rooms.router, prefix="/api/v1")


@app.get("/")
async def root() -> dict:
    """Root endpoint.

    Returns:
        Service info
    """
    return {
        "message": "Worship Presenter Relay",
        "version": __version__,
    }


def main(host: str = settings.PRESENTER_HOST, port: int = settings.PRESENTER_PORT) -> None:
    """Entry point for running the relay server directly."""
    import uvicorn

    uvicorn.run(
        "worship_presenter.server.main:app",
        host=host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    main()
