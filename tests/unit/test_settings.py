"""
Unit tests for application settings and notifier selection.
"""

import pytest
from pydantic import ValidationError

from src.adapters.mail.console import ConsoleNotifier
from src.adapters.mail.sendgrid import SendGridNotifier
from src.api.dependencies import build_notifier
from src.config.settings import Settings


class TestDefaults:
    """Tests for default configuration."""

    def test_rate_limit_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.signup_rate_limit == 20
        assert settings.signup_rate_window_seconds == 3600
        assert settings.activation_rate_limit == 30
        assert settings.activation_rate_window_seconds == 3600

    def test_token_ttl_default(self) -> None:
        assert Settings(_env_file=None).token_ttl_hours == 24

    def test_forwarded_headers_untrusted_by_default(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.trust_forwarded_for is False
        assert settings.trusted_proxy_hops == 1


class TestEnvironment:
    """Tests for environment variable overrides."""

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SIGNUP_RATE_LIMIT", "7")
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        settings = Settings(_env_file=None)
        assert settings.signup_rate_limit == 7
        assert settings.storage_backend == "memory"

    def test_non_positive_ceiling_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ACTIVATION_RATE_LIMIT", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_unknown_backend_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "redis")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestBuildNotifier:
    """Tests for notifier selection."""

    def test_console_without_api_key(self) -> None:
        settings = Settings(_env_file=None, sendgrid_api_key=None)
        assert isinstance(build_notifier(settings), ConsoleNotifier)

    def test_sendgrid_with_api_key(self) -> None:
        settings = Settings(_env_file=None, sendgrid_api_key="SG.key")
        assert isinstance(build_notifier(settings), SendGridNotifier)

    def test_sendgrid_receives_token_ttl(self) -> None:
        settings = Settings(_env_file=None, sendgrid_api_key="SG.key", token_ttl_hours=48)
        notifier = build_notifier(settings)
        assert isinstance(notifier, SendGridNotifier)
        assert notifier._token_ttl_hours == 48
