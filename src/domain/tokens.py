"""
Activation token generation and hashing.

Tokens are 32 bytes from the operating system CSPRNG rendered as 64
lowercase hex characters. Only the SHA-256 digest of a token is stored;
the raw value goes to the user once and is never persisted.
"""

import hashlib
import re
import secrets
from dataclasses import dataclass

from .exceptions import TokenGenerationError

TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2

_TOKEN_PATTERN = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True)
class IssuedToken:
    """A freshly issued token and the digest that identifies it in storage."""

    raw: str
    token_hash: str

    def __repr__(self) -> str:
        return f"IssuedToken(token_hash={self.token_hash[:12]}...)"


def hash_token(raw_token: str) -> str:
    """Deterministic SHA-256 hex digest of a raw token."""
    return hashlib.sha256(raw_token.encode("ascii")).hexdigest()


def is_well_formed(raw_token: str) -> bool:
    """Shape check run before any store access. Uppercase hex is rejected."""
    return bool(_TOKEN_PATTERN.fullmatch(raw_token))


class TokenGenerator:
    """Issues single-use activation tokens."""

    def issue(self) -> IssuedToken:
        """
        Generate a new token.

        Raises:
            TokenGenerationError: The entropy source is unavailable. There is
                no fallback to weaker randomness.
        """
        try:
            raw = secrets.token_hex(TOKEN_BYTES)
        except (OSError, NotImplementedError) as e:
            raise TokenGenerationError("entropy source unavailable") from e
        return IssuedToken(raw=raw, token_hash=hash_token(raw))
