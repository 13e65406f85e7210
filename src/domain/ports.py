"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the value types shared across the signup flow and the
interfaces (ports) that the domain requires from infrastructure.
Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol
from uuid import UUID


class MigrationType(str, Enum):
    """Onboarding path chosen on the signup form."""

    FRESH = "fresh"
    ENHANCE = "enhance"
    FULL = "full"


class SignupState(str, Enum):
    """
    Lifecycle states of a signup record.

    State Transitions:
    - PENDING -> ACTIVATED (token presented before expiry)
    - PENDING -> EXPIRED   (expires_at passed, computed from time)

    Terminal States:
    - ACTIVATED: used_at is set, never cleared
    - EXPIRED: never stored, derived from expires_at on read

    An attempt with a malformed or unknown token is INVALID for that
    attempt only and leaves the record untouched; see ActivationResult.
    """

    PENDING = "PENDING"
    ACTIVATED = "ACTIVATED"
    EXPIRED = "EXPIRED"


class ActivationResult(Enum):
    """
    Result of an activation attempt.

    Used by ActivationService.activate() to indicate success or the
    specific failure reason. Every failure value maps to a client error.
    """

    SUCCESS = "success"
    INVALID_FORMAT = "invalid_format"
    INVALID_OR_EXPIRED = "invalid_or_expired"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"


@dataclass(frozen=True)
class SignupAttributes:
    """Attributes captured from the signup form, immutable after creation."""

    email: str
    first_name: str
    last_name: str
    company_name: str
    company_size: str
    migration_type: MigrationType = MigrationType.FRESH
    phone: str | None = None


@dataclass(frozen=True)
class SignupRecord:
    """Persisted signup row. Only used_at ever changes, and only once."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    company_name: str
    company_size: str
    migration_type: MigrationType
    phone: str | None
    token_hash: str
    source_address: str
    created_at: datetime
    expires_at: datetime
    used_at: datetime | None = None

    def state(self, now: datetime) -> SignupState:
        if self.used_at is not None:
            return SignupState.ACTIVATED
        if self.expires_at <= now:
            return SignupState.EXPIRED
        return SignupState.PENDING

    def is_activatable(self, now: datetime) -> bool:
        return self.state(now) is SignupState.PENDING


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check. remaining is None when unknown."""

    allowed: bool
    remaining: int | None = None


class SignupRepository(Protocol):
    """Port interface for signup record persistence."""

    def create(
        self, attributes: SignupAttributes, token_hash: str, source_address: str
    ) -> UUID:
        """
        Atomically create a pending signup record.

        The pending-email check and the insert happen as one store-side
        operation, so two concurrent signups for one email cannot both pass.

        Args:
            attributes: Signup form attributes with a normalized email
            token_hash: SHA-256 hex digest of the issued token
            source_address: Network origin of the request

        Returns:
            Identifier of the new record

        Raises:
            DuplicatePending: Email already has a live (unused, unexpired) record
            DuplicateToken: token_hash already exists
            StoreUnavailable: Store unreachable or timed out
        """
        ...

    def find_by_token_hash(self, token_hash: str) -> SignupRecord | None:
        """
        Point lookup by token hash.

        Returns:
            The record, or None when no record carries this hash
        """
        ...

    def mark_used(self, record_id: UUID) -> datetime | None:
        """
        Set used_at with a single conditional write.

        Equivalent to UPDATE ... SET used_at = now()
        WHERE id = ? AND used_at IS NULL.

        Returns:
            The new used_at timestamp, or None if zero rows were updated
            (already used, possibly by a concurrent request)
        """
        ...

    def ping(self) -> None:
        """Raise StoreUnavailable if the store cannot serve requests."""
        ...


class RateLimitStore(Protocol):
    """Port interface for fixed-window request counters."""

    def hit(
        self, source_address: str, endpoint: str, ceiling: int, window_seconds: int
    ) -> int | None:
        """
        Count one request against (source_address, endpoint) atomically.

        A missing counter, or one whose window started window_seconds or
        more ago, restarts at 1. Otherwise the count is incremented only
        while it is below ceiling.

        Returns:
            The count after this request, or None if the request is denied
            (count left unchanged)

        Raises:
            StoreUnavailable: Store unreachable or timed out
        """
        ...

    def purge_stale(self, older_than_seconds: int) -> int:
        """
        Delete counters whose window started before the cutoff.

        Returns:
            Number of counters removed
        """
        ...


class Notifier(Protocol):
    """Port interface for activation link delivery."""

    def send(
        self,
        to_email: str,
        first_name: str,
        activation_link: str,
        migration_type: MigrationType,
        company_name: str,
    ) -> bool:
        """
        Deliver the activation link out of band.

        Returns:
            True if the message was accepted for delivery, False if the
            provider rejected it

        Raises:
            NotifierFailure: Provider could not be reached
        """
        ...
