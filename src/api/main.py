"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware, exception handlers, and lifespan events.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.repository.memory import InMemoryRateLimitStore, InMemorySignupRepository
from src.adapters.repository.postgres import (
    PostgresSignupRepository,
    create_pool,
    run_migrations,
)
from src.adapters.repository.rate_limits import PostgresRateLimitStore
from src.api.dependencies import build_notifier
from src.api.errors import install_error_handlers
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings
from src.domain.exceptions import StoreUnavailable
from src.domain.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Signup Activation API v1 - Create signups and activate them by token",
    },
]


async def purge_rate_limits_periodically(
    limiter: RateLimiter, interval_seconds: int, older_than_seconds: int
) -> None:
    """Background cleanup of stale counters. Correctness never depends on it."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(limiter.purge_stale, older_than_seconds)
        except StoreUnavailable:
            logger.warning("Rate limit purge skipped, store unavailable")
        except Exception:
            logger.exception("Rate limit purge failed")


def _longest_rate_window(settings: Settings) -> int:
    return max(settings.signup_rate_window_seconds, settings.activation_rate_window_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Opens the database connection pool on startup
    - Runs migrations on startup
    - Starts the stale rate limit purge task
    - Closes connection pool on shutdown, also when startup fails
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    token_ttl = timedelta(hours=settings.token_ttl_hours)

    logger.info("Starting application...")

    pool = None
    purge_task = None
    try:
        if settings.storage_backend == "memory":
            logger.warning("Using in-memory storage; state is lost on restart")
            app.state.signup_repository = InMemorySignupRepository(token_ttl=token_ttl)
            app.state.rate_limit_store = InMemoryRateLimitStore()
        else:
            logger.info("Connecting to database...")
            pool = create_pool(settings)
            pool.open()

            logger.info("Running database migrations...")
            run_migrations(pool)

            app.state.signup_repository = PostgresSignupRepository(pool, token_ttl=token_ttl)
            app.state.rate_limit_store = PostgresRateLimitStore(pool)

        app.state.notifier = build_notifier(settings)

        purge_task = asyncio.create_task(
            purge_rate_limits_periodically(
                RateLimiter(store=app.state.rate_limit_store),
                settings.rate_limit_purge_interval_seconds,
                _longest_rate_window(settings),
            )
        )

        logger.info("Application startup complete")

        yield

        logger.info("Shutting down application...")
    finally:
        if purge_task is not None:
            purge_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await purge_task
        if pool is not None:
            pool.close()
            logger.info("Database connection pool closed")


app = FastAPI(
    title="signup-activation",
    description="Signup Activation API - Single-use token activation with per-source rate limiting",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

install_error_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with store validation.

    Returns 200 OK if application and store are healthy.
    Returns 503 if the store cannot be reached.
    """
    request.app.state.signup_repository.ping()
    return {"status": "healthy"}
