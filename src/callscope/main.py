"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

# Unify uvicorn loggers with app format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    uvicorn_logger = logging.getLogger(uvicorn_logger_name)
    uvicorn_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    uvicorn_logger.addHandler(handler)

import uvicorn  # noqa: E402

from callscope import __version__  # noqa: E402
from callscope.api.routers import callgraph  # noqa: E402
from callscope.config import ConfigError, load_settings  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan handler for startup and shutdown events.

    On startup, reports the configured workspace. A missing or invalid
    configuration is logged, not fatal: call graph requests answer 503
    until it is fixed.
    """
    try:
        settings = load_settings()
        logger.info(f"Workspace: {settings.display_path}")
    except (ValueError, ConfigError) as e:
        logger.warning(f"No usable configuration: {e}")

    logger.info("callscope started")

    yield


app = FastAPI(
    title="callscope",
    description="Caller/callee graphs for Python codebases",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(callgraph.router)


def run() -> None:
    """Serve the API with uvicorn."""
    uvicorn.run(
        app,
        host=os.getenv("CALLSCOPE_HOST", "127.0.0.1"),
        port=int(os.getenv("CALLSCOPE_PORT", "8000")),
    )
