"""
Domain exceptions - Semantic error types for signup and activation.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Activation outcomes are not exceptions; see ActivationResult in ports.
"""


class SignupError(Exception):
    """Base class for signup domain errors."""

    pass


class DuplicatePending(SignupError):
    """Email already has an unused, unexpired signup."""

    pass


class DuplicateToken(SignupError):
    """Token hash collided with an existing signup record."""

    pass


class TokenGenerationError(SignupError):
    """Operating system entropy source could not produce a token."""

    pass


class StoreUnavailable(SignupError):
    """Persistence layer unreachable or timed out."""

    pass


class NotifierFailure(SignupError):
    """Activation email could not be delivered. Never fails a signup."""

    pass
