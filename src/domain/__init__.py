"""
Domain layer - Pure business logic with zero framework imports.

This package contains the token lifecycle and rate limiting rules of the
signup activation flow. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .activation import ActivationOutcome, ActivationService
from .exceptions import (
    DuplicatePending,
    DuplicateToken,
    NotifierFailure,
    SignupError,
    StoreUnavailable,
    TokenGenerationError,
)
from .ports import (
    ActivationResult,
    MigrationType,
    Notifier,
    RateLimitDecision,
    RateLimitStore,
    SignupAttributes,
    SignupRecord,
    SignupRepository,
    SignupState,
)
from .rate_limit import RateLimiter
from .signup import SignupReceipt, SignupService
from .tokens import IssuedToken, TokenGenerator, hash_token, is_well_formed

__all__ = [
    "ActivationOutcome",
    "ActivationResult",
    "ActivationService",
    "DuplicatePending",
    "DuplicateToken",
    "IssuedToken",
    "MigrationType",
    "Notifier",
    "NotifierFailure",
    "RateLimitDecision",
    "RateLimitStore",
    "RateLimiter",
    "SignupAttributes",
    "SignupError",
    "SignupReceipt",
    "SignupRecord",
    "SignupRepository",
    "SignupService",
    "SignupState",
    "StoreUnavailable",
    "TokenGenerationError",
    "TokenGenerator",
    "hash_token",
    "is_well_formed",
]
