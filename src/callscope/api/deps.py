"""FastAPI dependency injection functions."""

from functools import lru_cache

from fastapi import HTTPException, status

from callscope.config import Config, ConfigError, load_settings
from callscope.runner import CallGraphRunner


@lru_cache
def get_settings() -> Config:
    """Get cached application settings."""
    return load_settings()


@lru_cache
def _get_runner_instance() -> CallGraphRunner:
    settings = get_settings()
    return CallGraphRunner(settings.workspace_path, settings=settings)


def get_runner() -> CallGraphRunner:
    """Get the runner for the configured workspace.

    All requests share one runner, so a new run supersedes the one in
    progress.

    Raises:
        HTTPException: 503 if no workspace is configured.
    """
    try:
        return _get_runner_instance()
    except (ValueError, ConfigError) as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e


def reset_caches() -> None:
    """Forget cached settings and runner; the next request reloads them."""
    load_settings.cache_clear()
    get_settings.cache_clear()
    _get_runner_instance.cache_clear()
