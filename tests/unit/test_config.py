"""Tests for client settings loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from wacloud.config import (
    DEFAULT_API_VERSION,
    ClientSettings,
    Environment,
    RateLimitSettings,
    RetryPolicy,
)


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert (policy.max_retries, policy.initial_backoff, policy.max_backoff) == (3, 1.0, 10.0)

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy().max_retries = 5  # type: ignore[misc]

    def test_negative_retries_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(max_retries=-1)

    def test_max_backoff_below_initial_rejected(self) -> None:
        with pytest.raises(ValidationError, match="max_backoff"):
            RetryPolicy(initial_backoff=5.0, max_backoff=1.0)


class TestRateLimitSettings:
    def test_defaults_to_cloud_api_quota(self) -> None:
        limits = RateLimitSettings()
        assert limits.max_requests == 80
        assert limits.interval_seconds == 60.0

    def test_zero_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RateLimitSettings(max_requests=0)


class TestClientSettings:
    def test_api_url_joins_base_and_version(self) -> None:
        settings = ClientSettings(base_url="https://graph.facebook.com/", api_version="v19.0")
        assert settings.api_url == "https://graph.facebook.com/v19.0"

    def test_default_api_version(self) -> None:
        assert ClientSettings().api_version == DEFAULT_API_VERSION

    @pytest.mark.parametrize(("environment", "retries", "max_requests", "timeout"), [
        (Environment.DEVELOPMENT, 3, 80, 30.0),
        (Environment.PRODUCTION, 5, 1000, 15.0),
        (Environment.TESTING, 1, 10, 5.0),
    ])
    def test_environment_presets(
        self, environment: Environment, retries: int, max_requests: int, timeout: float,
    ) -> None:
        settings = ClientSettings.for_environment(environment, access_token="t")
        assert settings.environment is environment
        assert settings.retry_policy.max_retries == retries
        assert settings.rate_limit.max_requests == max_requests
        assert settings.connect_timeout == timeout
        assert settings.access_token == "t"

    def test_preset_overrides_win(self) -> None:
        settings = ClientSettings.for_environment(
            Environment.TESTING, retry_policy=RetryPolicy(max_retries=9),
        )
        assert settings.retry_policy.max_retries == 9


class TestFromFile:
    def test_loads_json(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "access_token": "tok",
            "phone_number_id": "111",
            "retry_policy": {"max_retries": 2},
            "rate_limit": {"max_requests": 20, "interval_seconds": 30},
        }))
        settings = ClientSettings.from_file(str(path))
        assert settings.access_token == "tok"
        assert settings.retry_policy.max_retries == 2
        assert settings.rate_limit.interval_seconds == 30.0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ClientSettings.from_file(str(tmp_path / "nope.json"))

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"connect_timeout": -1}))
        with pytest.raises(ValidationError):
            ClientSettings.from_file(str(path))


class TestFromEnv:
    def test_reads_whatsapp_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHATSAPP_ACCESS_TOKEN", "env-token")
        monkeypatch.setenv("WHATSAPP_PHONE_NUMBER_ID", "222")
        monkeypatch.setenv("WHATSAPP_BUSINESS_ACCOUNT_ID", "333")
        monkeypatch.setenv("WHATSAPP_VERIFY_TOKEN", "verify")
        monkeypatch.setenv("WHATSAPP_MAX_RETRIES", "7")
        monkeypatch.setenv("WHATSAPP_RATE_LIMIT_MAX_REQUESTS", "40")
        monkeypatch.setenv("WHATSAPP_LOG_LEVEL", "warning")
        settings = ClientSettings.from_env()
        assert settings.access_token == "env-token"
        assert settings.phone_number_id == "222"
        assert settings.business_account_id == "333"
        assert settings.verify_token == "verify"
        assert settings.retry_policy.max_retries == 7
        assert settings.rate_limit.max_requests == 40
        assert settings.log_level == "WARNING"

    def test_environment_selects_preset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("WHATSAPP_MAX_RETRIES", "WHATSAPP_RATE_LIMIT_MAX_REQUESTS", "WHATSAPP_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("WHATSAPP_ENVIRONMENT", "testing")
        settings = ClientSettings.from_env()
        assert settings.environment is Environment.TESTING
        assert settings.retry_policy.max_retries == 1
        assert settings.rate_limit.max_requests == 10
        assert settings.log_level == "DEBUG"

    def test_unknown_environment_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHATSAPP_ENVIRONMENT", "staging")
        with pytest.raises(ValueError):
            ClientSettings.from_env()
