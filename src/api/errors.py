"""
Error codes and exception handlers.

Client errors are surfaced verbatim as a stable code in ``detail``.
Infrastructure errors are logged with their cause and surfaced as a
generic ``service_unavailable``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domain.exceptions import DuplicateToken, StoreUnavailable, TokenGenerationError

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "validation_error"
DUPLICATE_PENDING = "duplicate_pending"
RATE_LIMITED = "rate_limited"
SERVICE_UNAVAILABLE = "service_unavailable"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed fields are a 400, not FastAPI's default 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": VALIDATION_ERROR, "errors": jsonable_encoder(exc.errors())},
    )


async def infrastructure_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Request %s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": SERVICE_UNAVAILABLE},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StoreUnavailable, infrastructure_error_handler)
    app.add_exception_handler(TokenGenerationError, infrastructure_error_handler)
    app.add_exception_handler(DuplicateToken, infrastructure_error_handler)
