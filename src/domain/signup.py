"""
Signup domain service - pending record creation and link delivery.

Flow:
    normalize email -> issue token -> create pending record -> notify

The raw token leaves this service twice: in the activation link handed to
the notifier and in the returned receipt. Only its hash is persisted.
Notification is best-effort. A delivery failure is logged and the record
stays valid, so the token can still be used or the email resent.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import timedelta
from urllib.parse import urlencode
from uuid import UUID

from .exceptions import DuplicatePending, DuplicateToken, NotifierFailure
from .ports import Notifier, SignupAttributes, SignupRepository
from .tokens import TokenGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignupReceipt:
    """Returned once per successful signup."""

    record_id: UUID
    token: str
    expires_in_seconds: int
    notified: bool


@dataclass
class SignupService:
    """
    Domain service for signup creation.

    Orchestrates email normalization, token issuance, record persistence
    and best-effort delivery of the activation link.
    """

    repository: SignupRepository
    notifier: Notifier
    activation_base_url: str
    token_ttl: timedelta = timedelta(hours=24)
    token_generator: TokenGenerator = field(default_factory=TokenGenerator)
    max_token_attempts: int = 3

    def register(self, attributes: SignupAttributes, source_address: str) -> SignupReceipt:
        """
        Create a pending signup and send its activation link.

        Args:
            attributes: Signup form attributes (email will be normalized)
            source_address: Network origin of the request

        Returns:
            SignupReceipt carrying the raw token

        Raises:
            DuplicatePending: Email already has a live signup
            DuplicateToken: Every issued token collided (never in practice)
            TokenGenerationError: Entropy source unavailable
            StoreUnavailable: Store unreachable; the signup fails closed
        """
        attributes = replace(attributes, email=self._normalize_email(attributes.email))

        record_id, token = self._create_record(attributes, source_address)
        link = self.build_activation_link(token)
        notified = self._notify(attributes, link)

        logger.info(
            "signup_success record=%s email=%s company=%s migration=%s source=%s",
            record_id,
            attributes.email,
            attributes.company_name,
            attributes.migration_type.value,
            source_address,
        )
        return SignupReceipt(
            record_id=record_id,
            token=token,
            expires_in_seconds=int(self.token_ttl.total_seconds()),
            notified=notified,
        )

    def build_activation_link(self, token: str) -> str:
        separator = "&" if "?" in self.activation_base_url else "?"
        return f"{self.activation_base_url}{separator}{urlencode({'token': token})}"

    def _create_record(
        self, attributes: SignupAttributes, source_address: str
    ) -> tuple[UUID, str]:
        for attempt in range(1, self.max_token_attempts + 1):
            issued = self.token_generator.issue()
            try:
                record_id = self.repository.create(attributes, issued.token_hash, source_address)
            except DuplicateToken:
                logger.warning(
                    "Token hash collision on attempt %d for %s", attempt, attributes.email
                )
                continue
            except DuplicatePending:
                logger.info("Signup rejected, pending activation exists: %s", attributes.email)
                raise
            return record_id, issued.raw
        raise DuplicateToken(f"no unique token after {self.max_token_attempts} attempts")

    def _notify(self, attributes: SignupAttributes, link: str) -> bool:
        try:
            delivered = self.notifier.send(
                attributes.email,
                attributes.first_name,
                link,
                attributes.migration_type,
                attributes.company_name,
            )
        except NotifierFailure:
            logger.exception("Activation email could not be sent to %s", attributes.email)
            return False
        except Exception:
            # The record is committed; the caller must still receive the token
            logger.exception("Notifier raised unexpectedly for %s", attributes.email)
            return False
        if not delivered:
            logger.warning("Activation email rejected for %s, signup kept", attributes.email)
        return delivered

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
