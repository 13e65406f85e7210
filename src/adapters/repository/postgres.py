"""
PostgreSQL repository adapter - Implements SignupRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Atomicity Design:
-----------------
1. **create()**: A transaction-scoped advisory lock keyed on the email
   serializes concurrent signups for one address. The pending check and the
   insert are a single ``INSERT ... SELECT ... WHERE NOT EXISTS`` statement.
   Token hash uniqueness is enforced by the unique index, never by a read.

2. **mark_used()**: One conditional ``UPDATE ... WHERE used_at IS NULL``.
   Two concurrent activations of the same record cannot both update a row,
   so exactly one caller gets a timestamp back.

3. **Time**: created_at, expires_at and used_at use database time (now()),
   and the TTL is bound as an interval parameter.

Store calls are bounded by the pool checkout timeout and the server-side
statement_timeout configured in create_pool(). Connection failures and
timeouts surface as StoreUnavailable.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from uuid import UUID

from psycopg import Connection, OperationalError, errors
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from src.config.settings import Settings
from src.domain.exceptions import DuplicatePending, DuplicateToken, StoreUnavailable
from src.domain.ports import MigrationType, SignupAttributes, SignupRecord

logger = logging.getLogger(__name__)

_MIGRATION_LOCK_ID = 7_203_114

_RECORD_COLUMNS = """
    id, email, first_name, last_name, company_name, company_size,
    migration_type, phone, token_hash, source_address,
    created_at, expires_at, used_at
"""


def create_pool(settings: Settings) -> ConnectionPool:
    """
    Build the application's connection pool without opening it.

    The caller owns the pool: open() at startup, close() at shutdown.
    """
    statement_timeout_ms = int(settings.store_timeout_seconds * 1000)
    return ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.store_timeout_seconds,
        kwargs={
            "connect_timeout": max(2, int(settings.store_timeout_seconds)),
            "options": f"-c statement_timeout={statement_timeout_ms}",
        },
        open=False,
    )


@contextmanager
def store_connection(pool: ConnectionPool) -> Iterator[Connection]:
    """
    Borrow a pooled connection, translating infrastructure failures.

    Pool checkout timeouts, lost connections and statement timeouts
    become StoreUnavailable. Integrity errors pass through unchanged.
    """
    try:
        with pool.connection() as conn:
            yield conn
    except (PoolTimeout, OperationalError) as e:
        logger.error("Database unavailable: %s", e)
        raise StoreUnavailable("database unavailable") from e


class PostgresSignupRepository:
    """
    Implements SignupRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool, token_ttl: timedelta = timedelta(hours=24)) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            token_ttl: Lifetime of an activation token, fixed at creation
        """
        self._pool = pool
        self._token_ttl = token_ttl

    def create(
        self, attributes: SignupAttributes, token_hash: str, source_address: str
    ) -> UUID:
        """
        Atomically create a pending signup record.

        Returns:
            Identifier of the new record

        Raises:
            DuplicatePending: Email has an unused, unexpired record
            DuplicateToken: token_hash violates the unique index
        """
        lock_sql = "SELECT pg_advisory_xact_lock(hashtext(%(email)s))"

        insert_sql = """
            INSERT INTO signups (
                email, first_name, last_name, company_name, company_size,
                phone, migration_type, token_hash, source_address,
                created_at, expires_at
            )
            SELECT %(email)s::text, %(first_name)s::text, %(last_name)s::text,
                   %(company_name)s::text, %(company_size)s::text, %(phone)s::text,
                   %(migration_type)s::text, %(token_hash)s::text,
                   %(source_address)s::text, now(), now() + %(ttl)s
            WHERE NOT EXISTS (
                SELECT 1 FROM signups
                WHERE email = %(email)s
                  AND used_at IS NULL
                  AND expires_at > now()
            )
            RETURNING id
        """

        params = {
            "email": attributes.email,
            "first_name": attributes.first_name,
            "last_name": attributes.last_name,
            "company_name": attributes.company_name,
            "company_size": attributes.company_size,
            "phone": attributes.phone,
            "migration_type": attributes.migration_type.value,
            "token_hash": token_hash,
            "source_address": source_address,
            "ttl": self._token_ttl,
        }

        try:
            with store_connection(self._pool) as conn, conn.cursor() as cursor:
                cursor.execute(lock_sql, {"email": attributes.email})
                cursor.execute(insert_sql, params)
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            raise DuplicateToken(token_hash[:12]) from e

        if row is None:
            raise DuplicatePending(attributes.email)
        return row[0]

    def find_by_token_hash(self, token_hash: str) -> SignupRecord | None:
        """Point lookup by token hash. None is a normal "not found" outcome."""
        sql = f"SELECT {_RECORD_COLUMNS} FROM signups WHERE token_hash = %s"

        with store_connection(self._pool) as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (token_hash,))
            row = cursor.fetchone()

        if row is None:
            return None
        row["migration_type"] = MigrationType(row["migration_type"])
        return SignupRecord(**row)

    def mark_used(self, record_id: UUID) -> datetime | None:
        """
        Set used_at if, and only if, it is still NULL.

        Returns:
            New used_at, or None when zero rows matched (already used)
        """
        sql = """
            UPDATE signups
            SET used_at = now()
            WHERE id = %s AND used_at IS NULL
            RETURNING used_at
        """

        with store_connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (record_id,))
            row = cursor.fetchone()
            conn.commit()

        return row[0] if row is not None else None

    def ping(self) -> None:
        with store_connection(self._pool) as conn:
            conn.execute("SELECT 1")


def run_migrations(pool: ConnectionPool) -> None:
    """
    Apply every SQL file in migrations/ in filename order.

    Files must be idempotent (IF NOT EXISTS). A session advisory lock keeps
    several workers starting at once from applying them concurrently.

    Raises:
        RuntimeError: A migration file failed; the app must not start
    """
    # src/adapters/repository/postgres.py -> <project root>/migrations
    migrations_dir = Path(__file__).resolve().parents[3] / "migrations"
    sql_files = sorted(migrations_dir.glob("*.sql"))
    if not sql_files:
        logger.warning("No migration files found in %s", migrations_dir)
        return

    logger.info("Running %d migration(s)", len(sql_files))
    with pool.connection() as conn:
        conn.execute("SELECT pg_advisory_lock(%s::bigint)", (_MIGRATION_LOCK_ID,))
        try:
            for sql_file in sql_files:
                try:
                    conn.execute(sql_file.read_text())
                    conn.commit()
                except errors.Error as e:
                    conn.rollback()
                    logger.error("Migration failed: %s - %s", sql_file.name, e)
                    raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
                logger.info("Migration complete: %s", sql_file.name)
        finally:
            conn.execute("SELECT pg_advisory_unlock(%s::bigint)", (_MIGRATION_LOCK_ID,))
            conn.commit()
