"""
Shared fixtures for adversarial tests.

Provides common test infrastructure for race condition and brute force tests.
The PostgreSQL-backed fixtures build on the session pool from the root
conftest and are skipped when the database is unreachable.
"""

from datetime import timedelta

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresSignupRepository
from src.adapters.repository.rate_limits import PostgresRateLimitStore


@pytest.fixture
def postgres_repository(pool: ConnectionPool) -> PostgresSignupRepository:
    """Create repository instance for each test."""
    return PostgresSignupRepository(pool, token_ttl=timedelta(hours=24))


@pytest.fixture
def postgres_rate_store(pool: ConnectionPool) -> PostgresRateLimitStore:
    return PostgresRateLimitStore(pool)
