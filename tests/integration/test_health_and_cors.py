"""
Integration tests for the health endpoint and CORS configuration.

Runs against the real application object with in-memory stores, so no
database is required.
"""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.adapters.repository.memory import InMemoryRateLimitStore, InMemorySignupRepository
from src.api.main import app
from src.domain.exceptions import StoreUnavailable


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    app.state.signup_repository = InMemorySignupRepository()
    app.state.rate_limit_store = InMemoryRateLimitStore()
    app.state.notifier = MagicMock()
    yield TestClient(app)


class TestHealth:
    """Tests for GET /health."""

    def test_healthy(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_store_down_returns_503(self, client: TestClient) -> None:
        repository = MagicMock()
        repository.ping.side_effect = StoreUnavailable("down")
        app.state.signup_repository = repository

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json() == {"detail": "service_unavailable"}


class TestCors:
    """Tests for the browser origin allowlist."""

    def test_preflight_from_allowed_origin(self, client: TestClient) -> None:
        response = client.options(
            "/v1/signups",
            headers={
                "Origin": "https://vilara.ai",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://vilara.ai"

    def test_preflight_from_unknown_origin(self, client: TestClient) -> None:
        response = client.options(
            "/v1/signups",
            headers={
                "Origin": "https://evil.example",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert "access-control-allow-origin" not in response.headers
