"""
In-memory adapters - Implement SignupRepository and RateLimitStore.

Process-local stores for development (STORAGE_BACKEND=memory) and tests.
A single lock per store makes every operation atomic, which gives the
same guarantees as the PostgreSQL adapters within one process: one
pending signup per email, unique token hashes, exactly-once mark_used and
lossless counter increments. State is lost on restart.
"""

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from src.domain.exceptions import DuplicatePending, DuplicateToken
from src.domain.ports import SignupAttributes, SignupRecord


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemorySignupRepository:
    """Implements SignupRepository protocol with dictionaries."""

    def __init__(
        self,
        token_ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._token_ttl = token_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[UUID, SignupRecord] = {}
        self._by_token_hash: dict[str, UUID] = {}

    def create(
        self, attributes: SignupAttributes, token_hash: str, source_address: str
    ) -> UUID:
        with self._lock:
            now = self._clock()
            if any(
                r.email == attributes.email and r.is_activatable(now)
                for r in self._records.values()
            ):
                raise DuplicatePending(attributes.email)
            if token_hash in self._by_token_hash:
                raise DuplicateToken(token_hash[:12])

            record = SignupRecord(
                id=uuid4(),
                email=attributes.email,
                first_name=attributes.first_name,
                last_name=attributes.last_name,
                company_name=attributes.company_name,
                company_size=attributes.company_size,
                migration_type=attributes.migration_type,
                phone=attributes.phone,
                token_hash=token_hash,
                source_address=source_address,
                created_at=now,
                expires_at=now + self._token_ttl,
            )
            self._records[record.id] = record
            self._by_token_hash[token_hash] = record.id
            return record.id

    def find_by_token_hash(self, token_hash: str) -> SignupRecord | None:
        with self._lock:
            record_id = self._by_token_hash.get(token_hash)
            return self._records.get(record_id) if record_id is not None else None

    def mark_used(self, record_id: UUID) -> datetime | None:
        with self._lock:
            record = self._records.get(record_id)
            if record is None or record.used_at is not None:
                return None
            used_at = self._clock()
            self._records[record_id] = replace(record, used_at=used_at)
            return used_at

    def ping(self) -> None:
        return None

    def records(self) -> list[SignupRecord]:
        """Snapshot of all records, oldest first."""
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.created_at)


class InMemoryRateLimitStore:
    """Implements RateLimitStore protocol with a dictionary of counters."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        # (source_address, endpoint) -> (request_count, window_start)
        self._counters: dict[tuple[str, str], tuple[int, datetime]] = {}

    def hit(
        self, source_address: str, endpoint: str, ceiling: int, window_seconds: int
    ) -> int | None:
        key = (source_address, endpoint)
        with self._lock:
            now = self._clock()
            counter = self._counters.get(key)
            if counter is None or counter[1] <= now - timedelta(seconds=window_seconds):
                self._counters[key] = (1, now)
                return 1
            count, window_start = counter
            if count >= ceiling:
                return None
            self._counters[key] = (count + 1, window_start)
            return count + 1

    def purge_stale(self, older_than_seconds: int) -> int:
        with self._lock:
            cutoff = self._clock() - timedelta(seconds=older_than_seconds)
            stale = [key for key, (_, start) in self._counters.items() if start < cutoff]
            for key in stale:
                del self._counters[key]
            return len(stale)
