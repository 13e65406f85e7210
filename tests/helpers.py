"""
Test helpers shared across unit, integration and adversarial suites.
"""

from datetime import UTC, datetime, timedelta

from src.domain.ports import MigrationType, SignupAttributes, SignupRepository
from src.domain.tokens import TokenGenerator


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_attributes(email: str = "user@example.com", **overrides: object) -> SignupAttributes:
    """Signup attributes with sensible defaults."""
    values: dict[str, object] = {
        "email": email,
        "first_name": "John",
        "last_name": "Doe",
        "company_name": "Test Corp",
        "company_size": "10-49",
        "migration_type": MigrationType.FRESH,
        "phone": None,
    }
    values.update(overrides)
    return SignupAttributes(**values)  # type: ignore[arg-type]


def signup_payload(email: str = "user@example.com", **overrides: object) -> dict:
    """JSON body for POST /v1/signups."""
    payload: dict[str, object] = {
        "email": email,
        "firstName": "John",
        "lastName": "Doe",
        "companyName": "Test Corp",
        "companySize": "10-49",
    }
    payload.update(overrides)
    return payload


def create_pending(repository: SignupRepository, email: str = "victim@example.com") -> str:
    """Create a pending signup through any repository and return the raw token."""
    issued = TokenGenerator().issue()
    repository.create(make_attributes(email), issued.token_hash, "203.0.113.7")
    return issued.raw
