"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field names are snake_case in Python and camelCase on the wire.
"""

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from src.domain.ports import MigrationType

# C0 controls and DEL; PostgreSQL text columns cannot hold NUL at all
_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")


def parse_migration_type(value: Any) -> MigrationType:
    """Unknown or missing migration types fall back to FRESH."""
    if isinstance(value, MigrationType):
        return value
    try:
        return MigrationType(str(value).strip().lower())
    except ValueError:
        return MigrationType.FRESH


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class SignupRequest(CamelModel):
    """Request model for the signup form."""

    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    company_name: str = Field(..., min_length=1, max_length=255)
    company_size: str = Field(..., min_length=1, max_length=50, examples=["10-49"])
    phone: str | None = Field(default=None, max_length=20)
    migration_type: MigrationType | None = Field(
        default=None,
        description="fresh, enhance or full; unknown values are treated as fresh",
    )

    @field_validator("phone", mode="before")
    @classmethod
    def blank_phone_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("first_name", "last_name", "company_name", "company_size", "phone")
    @classmethod
    def reject_control_characters(cls, value: str | None) -> str | None:
        if value is not None and _CONTROL_CHARACTERS.search(value):
            raise ValueError("must not contain control characters")
        return value

    @field_validator("migration_type", mode="before")
    @classmethod
    def coerce_migration_type(cls, value: Any) -> MigrationType | None:
        if value is None or value == "":
            return None
        return parse_migration_type(value)


class SignupResponse(CamelModel):
    """Response model for a created signup. The token is returned only here."""

    token: str
    message: str
    expires_in_seconds: int


class ActivationRequest(CamelModel):
    """Request model for account activation."""

    token: str = Field(..., description="64-character lowercase hex activation token")


class ActivatedUser(CamelModel):
    """Public attributes of an activated signup."""

    email: str
    first_name: str
    last_name: str
    company_name: str
    company_size: str
    migration_type: MigrationType
    used_at: datetime


class ActivationResponse(CamelModel):
    """Response model for successful activation."""

    message: str
    user: ActivatedUser


class ErrorResponse(BaseModel):
    """Standard error response model. detail carries a stable error code."""

    detail: str
