"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError

# Try to use uvloop for better performance (Unix only)
try:
    import uvloop
    uvloop.install()
    _UVLOOP_ENABLED = True
except ImportError:
    _UVLOOP_ENABLED = False

from mvebot.api import router
from mvebot.config import get_settings
from mvebot.errors import PersistenceFailure
from mvebot.services import Bot
from mvebot.storage import get_database, init_database

# Database initialization timeout in seconds
DB_INIT_TIMEOUT = 30

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(f"Starting MVE Cluster Bot for {settings.symbol}...")
    logger.info(f"Event loop: {'uvloop' if _UVLOOP_ENABLED else 'asyncio'}")

    db_initialized = False
    bot: Bot | None = None

    try:
        if settings.dry_run:
            logger.info("DRY_RUN mode enabled: positions are kept in memory only")
        else:
            try:
                await asyncio.wait_for(init_database(), timeout=DB_INIT_TIMEOUT)
            except asyncio.TimeoutError as e:
                raise PersistenceFailure(
                    f"Database initialization timed out after {DB_INIT_TIMEOUT}s"
                ) from e
            except (SQLAlchemyError, OSError) as e:
                raise PersistenceFailure(f"Database initialization failed: {e}") from e
            db_initialized = True
            logger.info("Database initialized")

        bot = Bot.from_settings(settings)
        await bot.restore()
        bot.start()

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        if bot:
            try:
                await bot.stop()
            except Exception as cleanup_err:
                logger.warning(f"Error stopping bot: {cleanup_err}")
        if db_initialized:
            try:
                await get_database().close()
            except Exception as cleanup_err:
                logger.warning(f"Error closing database: {cleanup_err}")
        raise  # Re-raise to prevent app from starting in broken state

    app.state.bot = bot

    yield

    # Shutdown
    logger.info("Shutting down...")
    app.state.bot = None
    await bot.stop()

    if db_initialized:
        try:
            await get_database().close()
            logger.info("Database connections closed")
        except Exception as e:
            logger.warning(f"Error closing database: {e}")

    logger.info("Shutdown complete")


# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title="MVE Cluster Bot",
    description="SMA clustering + crossover signal engine with stop-loss watchdog",
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Include REST routes
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "MVE Cluster Bot",
        "version": "0.1.0",
        "docs": "/docs",
        "event_loop": "uvloop" if _UVLOOP_ENABLED else "asyncio",
    }


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "mvebot.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
