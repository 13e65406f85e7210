"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryRateLimitStore, InMemorySignupRepository
from .postgres import PostgresSignupRepository, create_pool, run_migrations
from .rate_limits import PostgresRateLimitStore

__all__ = [
    "InMemoryRateLimitStore",
    "InMemorySignupRepository",
    "PostgresRateLimitStore",
    "PostgresSignupRepository",
    "create_pool",
    "run_migrations",
]
