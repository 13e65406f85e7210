"""
API v1 routes.

Defines REST endpoints for the signup activation API:
- POST /v1/signups - Create a pending signup and email the activation link
- GET /v1/activations?token=... - Activate from the emailed link
- POST /v1/activations - Activate with a JSON body

Routes are synchronous functions so that store calls run in the
threadpool instead of blocking the event loop.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import (
    get_activation_service,
    get_client_address,
    get_signup_service,
    limit_activations,
    limit_signups,
)
from src.api.errors import DUPLICATE_PENDING
from src.api.models import (
    ActivatedUser,
    ActivationRequest,
    ActivationResponse,
    ErrorResponse,
    SignupRequest,
    SignupResponse,
    parse_migration_type,
)
from src.domain.activation import ActivationService
from src.domain.exceptions import DuplicatePending
from src.domain.ports import SignupAttributes
from src.domain.signup import SignupService

router = APIRouter(tags=["v1"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation or credential error"},
    429: {"model": ErrorResponse, "description": "Too many requests from this address"},
    503: {"model": ErrorResponse, "description": "Store unavailable"},
}


@router.post(
    "/signups",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(limit_signups)],
    summary="Create a pending signup",
    description="Submit the signup form. A single-use activation link is emailed "
    "to the provided address. It expires after TOKEN_TTL_HOURS (24 by default).",
)
def create_signup(
    request_data: SignupRequest,
    migration: str | None = Query(
        default=None, description="Migration type when not given in the body"
    ),
    source_address: str = Depends(get_client_address),
    service: SignupService = Depends(get_signup_service),
) -> SignupResponse:
    """
    Create a pending signup and send its activation link.

    - **email**: Address that receives the activation link
    - **firstName**, **lastName**, **companyName**, **companySize**: Required
    - **phone**: Optional
    - **migrationType**: fresh (default), enhance or full

    Returns the raw activation token. It is never shown again.
    """
    migration_type = request_data.migration_type or parse_migration_type(migration)
    attributes = SignupAttributes(
        email=str(request_data.email),
        first_name=request_data.first_name,
        last_name=request_data.last_name,
        company_name=request_data.company_name,
        company_size=request_data.company_size,
        migration_type=migration_type,
        phone=request_data.phone,
    )

    try:
        receipt = service.register(attributes, source_address)
    except DuplicatePending:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=DUPLICATE_PENDING,
        ) from None

    return SignupResponse(
        token=receipt.token,
        message="Activation link sent to your email",
        expires_in_seconds=receipt.expires_in_seconds,
    )


@router.get(
    "/activations",
    response_model=ActivationResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(limit_activations)],
    summary="Activate account from link",
    description="Consume the activation token carried by the emailed link.",
)
def activate_from_link(
    token: str = Query(..., description="Activation token from the email link"),
    service: ActivationService = Depends(get_activation_service),
) -> ActivationResponse:
    return _activate(service, token)


@router.post(
    "/activations",
    response_model=ActivationResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(limit_activations)],
    summary="Activate account",
    description="Consume an activation token submitted in a JSON body.",
)
def activate(
    request_data: ActivationRequest,
    service: ActivationService = Depends(get_activation_service),
) -> ActivationResponse:
    return _activate(service, request_data.token)


def _activate(service: ActivationService, token: str) -> ActivationResponse:
    outcome = service.activate(token)

    if not outcome.succeeded or outcome.record is None:
        # Every failure maps to its code; none carries user data
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=outcome.result.value,
        )

    record = outcome.record
    return ActivationResponse(
        message="Account activated successfully",
        user=ActivatedUser(
            email=record.email,
            first_name=record.first_name,
            last_name=record.last_name,
            company_name=record.company_name,
            company_size=record.company_size,
            migration_type=record.migration_type,
            used_at=record.used_at,
        ),
    )
