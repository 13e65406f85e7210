"""
PostgreSQL rate limit store - Implements RateLimitStore protocol.

Each request is counted with a single upsert. The ON CONFLICT branch
restarts the window when it has aged out and otherwise increments only
while the count is below the ceiling; when neither holds, the WHERE clause
suppresses the update and no row is returned, which signals a denial.
The row lock taken by ON CONFLICT DO UPDATE serializes concurrent bursts
from one source, so increments are never lost.
"""

import logging
from datetime import timedelta

from psycopg_pool import ConnectionPool

from .postgres import store_connection

logger = logging.getLogger(__name__)


class PostgresRateLimitStore:
    """
    Implements RateLimitStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def hit(
        self, source_address: str, endpoint: str, ceiling: int, window_seconds: int
    ) -> int | None:
        """
        Count one request atomically.

        Returns:
            Count after this request, or None when the ceiling is reached
        """
        sql = """
            INSERT INTO rate_limits (source_address, endpoint, request_count, window_start)
            VALUES (%(source)s, %(endpoint)s, 1, now())
            ON CONFLICT (source_address, endpoint) DO UPDATE
            SET request_count = CASE
                    WHEN rate_limits.window_start <= now() - %(window)s THEN 1
                    ELSE rate_limits.request_count + 1
                END,
                window_start = CASE
                    WHEN rate_limits.window_start <= now() - %(window)s THEN now()
                    ELSE rate_limits.window_start
                END
            WHERE rate_limits.window_start <= now() - %(window)s
               OR rate_limits.request_count < %(ceiling)s
            RETURNING request_count
        """
        params = {
            "source": source_address,
            "endpoint": endpoint,
            "window": timedelta(seconds=window_seconds),
            "ceiling": ceiling,
        }

        with store_connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
            conn.commit()

        return row[0] if row is not None else None

    def purge_stale(self, older_than_seconds: int) -> int:
        """Delete counters whose window started before the cutoff."""
        sql = "DELETE FROM rate_limits WHERE window_start < now() - %s"

        with store_connection(self._pool) as conn, conn.cursor() as cursor:
            cursor.execute(sql, (timedelta(seconds=older_than_seconds),))
            removed = cursor.rowcount
            conn.commit()

        return removed
