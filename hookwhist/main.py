"""FastAPI main application."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from hookwhist import __version__
from hookwhist.api.routes import router
from hookwhist.api.websocket import websocket_manager
from hookwhist.config import settings

# Configure logging for the app (must be after imports but before app usage)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stdout,
)
logging.getLogger("hookwhist").setLevel(logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the default room on startup and drop all rooms on shutdown."""
    websocket_manager.get_or_create_game(settings.default_game_id)
    logger.info("Room %s open", settings.default_game_id)

    yield

    websocket_manager.game_handler.cancel_pending()
    websocket_manager.games.clear()


# Create FastAPI app
app = FastAPI(
    title="Hook Whist API",
    description="Server for a trick-taking card game with declarations",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "hookwhist.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info",
    )


if __name__ == "__main__":
    main()
