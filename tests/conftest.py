"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for expiry and window tests
- In-memory stores and a mocked notifier
- A minimal FastAPI app wired to the in-memory stores
- A PostgreSQL connection pool (skipped when the database is unreachable)
"""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.memory import InMemoryRateLimitStore, InMemorySignupRepository
from src.adapters.repository.postgres import run_migrations
from src.api.dependencies import get_activation_service
from src.api.errors import install_error_handlers
from src.api.v1 import router
from src.config.settings import Settings, get_settings
from src.domain.activation import ActivationService
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def signup_repository(clock: FakeClock) -> InMemorySignupRepository:
    return InMemorySignupRepository(clock=clock)


@pytest.fixture
def rate_limit_store(clock: FakeClock) -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(clock=clock)


@pytest.fixture
def notifier() -> MagicMock:
    """Notifier mock that accepts every message."""
    mock = MagicMock()
    mock.send.return_value = True
    return mock


@pytest.fixture
def test_settings() -> Settings:
    """Settings with small rate limit ceilings, ignoring any .env file."""
    return Settings(
        _env_file=None,
        signup_rate_limit=3,
        signup_rate_window_seconds=60,
        activation_rate_limit=5,
        activation_rate_window_seconds=60,
    )


@pytest.fixture
def app(
    signup_repository: InMemorySignupRepository,
    rate_limit_store: InMemoryRateLimitStore,
    notifier: MagicMock,
    clock: FakeClock,
    test_settings: Settings,
) -> FastAPI:
    """Create test FastAPI application backed by in-memory stores."""
    test_app = FastAPI()
    install_error_handlers(test_app)
    test_app.include_router(router, prefix="/v1")

    test_app.state.signup_repository = signup_repository
    test_app.state.rate_limit_store = rate_limit_store
    test_app.state.notifier = notifier

    test_app.dependency_overrides[get_settings] = lambda: test_settings
    test_app.dependency_overrides[get_activation_service] = lambda: ActivationService(
        repository=signup_repository, clock=clock
    )
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """
    Connection pool against DATABASE_URL with migrations applied.

    Tests depending on it are skipped when PostgreSQL is not reachable.
    """
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=False,
    )
    try:
        pool.open(wait=True, timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL not reachable at DATABASE_URL")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty both tables before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM signups")
        conn.execute("DELETE FROM rate_limits")
        conn.commit()
    yield
