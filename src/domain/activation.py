"""
Activation domain service - single-use token validation.

State machine per attempt:

    INVALID_FORMAT      token fails the shape check (no store access)
    INVALID_OR_EXPIRED  no record carries the token hash
    ALREADY_USED        used_at already set, or a concurrent attempt won
    EXPIRED             expires_at has passed
    SUCCESS             conditional write set used_at

Unknown tokens report INVALID_OR_EXPIRED so a caller cannot tell whether a
token ever existed. Exactly-once activation relies on the repository's
conditional update, never on the read performed here.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from .ports import ActivationResult, SignupRecord, SignupRepository
from .tokens import hash_token, is_well_formed

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ActivationOutcome:
    """Result of one activation attempt. record is set only on SUCCESS."""

    result: ActivationResult
    record: SignupRecord | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is ActivationResult.SUCCESS


@dataclass
class ActivationService:
    """Validates presented tokens and consumes the matching signup record."""

    repository: SignupRepository
    clock: Callable[[], datetime] = field(default=_utcnow)

    def activate(self, raw_token: str) -> ActivationOutcome:
        """
        Consume a token and mark its signup record as used.

        Args:
            raw_token: Token exactly as presented by the client

        Returns:
            ActivationOutcome with the updated record on success

        Raises:
            StoreUnavailable: Store unreachable or timed out
        """
        if not is_well_formed(raw_token):
            return self._fail(ActivationResult.INVALID_FORMAT, None)

        token_hash = hash_token(raw_token)
        record = self.repository.find_by_token_hash(token_hash)
        if record is None:
            return self._fail(ActivationResult.INVALID_OR_EXPIRED, token_hash)

        if record.used_at is not None:
            return self._fail(ActivationResult.ALREADY_USED, token_hash)

        if record.expires_at <= self.clock():
            return self._fail(ActivationResult.EXPIRED, token_hash)

        used_at = self.repository.mark_used(record.id)
        if used_at is None:
            # Lost the conditional write to a concurrent activation
            return self._fail(ActivationResult.ALREADY_USED, token_hash)

        activated = replace(record, used_at=used_at)
        logger.info(
            "activation_success record=%s email=%s company=%s migration=%s token_hash=%s",
            activated.id,
            activated.email,
            activated.company_name,
            activated.migration_type.value,
            token_hash[:12],
        )
        return ActivationOutcome(result=ActivationResult.SUCCESS, record=activated)

    def _fail(self, result: ActivationResult, token_hash: str | None) -> ActivationOutcome:
        logger.info(
            "activation_failed result=%s token_hash=%s",
            result.value,
            token_hash[:12] if token_hash else "-",
        )
        return ActivationOutcome(result=result)
