"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
Adapters are created once in the application lifespan and kept on
app.state; services are cheap and built per request.
"""

from datetime import timedelta

from fastapi import Depends, HTTPException, Request, Response, status

from src.adapters.mail.console import ConsoleNotifier
from src.adapters.mail.sendgrid import SendGridNotifier
from src.api.errors import RATE_LIMITED
from src.config.settings import Settings, get_settings
from src.domain.activation import ActivationService
from src.domain.ports import Notifier, RateLimitStore, SignupRepository
from src.domain.rate_limit import RateLimiter
from src.domain.signup import SignupService

SIGNUPS_ENDPOINT = "signups"
ACTIVATIONS_ENDPOINT = "activations"

# Width of the source_address columns
_MAX_ADDRESS_LENGTH = 45


def build_notifier(settings: Settings) -> Notifier:
    """SendGrid when an API key is configured, console logging otherwise."""
    if settings.sendgrid_api_key:
        return SendGridNotifier(
            api_key=settings.sendgrid_api_key,
            email_from=settings.email_from,
            from_name=settings.email_from_name,
            timeout_seconds=settings.email_timeout_seconds,
            token_ttl_hours=settings.token_ttl_hours,
        )
    return ConsoleNotifier()


def get_signup_repository(request: Request) -> SignupRepository:
    """Signup repository created during app lifespan startup."""
    return request.app.state.signup_repository


def get_rate_limit_store(request: Request) -> RateLimitStore:
    return request.app.state.rate_limit_store


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_signup_service(
    repository: SignupRepository = Depends(get_signup_repository),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> SignupService:
    """
    Create signup service with injected dependencies.

    Wires together the repository and notifier for the domain service.
    """
    return SignupService(
        repository=repository,
        notifier=notifier,
        activation_base_url=settings.activation_base_url,
        token_ttl=timedelta(hours=settings.token_ttl_hours),
    )


def get_activation_service(
    repository: SignupRepository = Depends(get_signup_repository),
) -> ActivationService:
    return ActivationService(repository=repository)


def get_rate_limiter(store: RateLimitStore = Depends(get_rate_limit_store)) -> RateLimiter:
    return RateLimiter(store=store)


def get_client_address(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """
    Resolve the network origin of the request.

    The socket peer is used unless forwarded headers are trusted. Each
    trusted proxy appends the address it saw, so the client is the entry
    trusted_proxy_hops from the right. Entries left of it are client-supplied.
    """
    address = ""
    if settings.trust_forwarded_for:
        forwarded_for = request.headers.get("X-Forwarded-For", "")
        entries = [entry.strip() for entry in forwarded_for.split(",") if entry.strip()]
        if entries:
            address = entries[max(len(entries) - settings.trusted_proxy_hops, 0)]
    if not address and request.client:
        address = request.client.host
    return address[:_MAX_ADDRESS_LENGTH] or "unknown"


def _enforce_rate_limit(
    limiter: RateLimiter,
    response: Response,
    source_address: str,
    endpoint: str,
    ceiling: int,
    window_seconds: int,
) -> None:
    decision = limiter.check(source_address, endpoint, ceiling, window_seconds)
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=RATE_LIMITED,
            headers={"Retry-After": str(window_seconds)},
        )
    if decision.remaining is not None:
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)


def limit_signups(
    response: Response,
    source_address: str = Depends(get_client_address),
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
) -> None:
    """Admission check for POST /signups. Raises 429 when throttled."""
    _enforce_rate_limit(
        limiter,
        response,
        source_address,
        SIGNUPS_ENDPOINT,
        settings.signup_rate_limit,
        settings.signup_rate_window_seconds,
    )


def limit_activations(
    response: Response,
    source_address: str = Depends(get_client_address),
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
) -> None:
    """Admission check for /activations. Raises 429 when throttled."""
    _enforce_rate_limit(
        limiter,
        response,
        source_address,
        ACTIVATIONS_ENDPOINT,
        settings.activation_rate_limit,
        settings.activation_rate_window_seconds,
    )
