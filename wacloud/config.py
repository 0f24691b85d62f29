"""Client configuration for retry policy, rate limits, credentials and environment presets."""

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_BASE_URL = "https://graph.facebook.com"
DEFAULT_API_VERSION = "v21.0"

# Published Cloud API quota for a business phone number
DEFAULT_MAX_REQUESTS = 80
DEFAULT_INTERVAL_SECONDS = 60.0


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class RetryPolicy(BaseModel):
    """Immutable retry configuration for the request pipeline."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0)
    initial_backoff: float = Field(default=1.0, gt=0)
    max_backoff: float = Field(default=10.0, gt=0)

    @model_validator(mode="after")
    def _check_backoff_bounds(self) -> RetryPolicy:
        if self.max_backoff < self.initial_backoff:
            raise ValueError("max_backoff must be >= initial_backoff")
        return self

    def backoff_for(self, attempt: int, jitter_ratio: float = 0.0) -> float:
        """Delay in seconds before retrying after ``attempt`` (0-based).

        ``jitter_ratio`` in [0, 1) adds up to 20% of the exponential term.
        """
        # 2**32 * initial_backoff is far past any sane cap
        exponential = self.initial_backoff * (2 ** min(attempt, 32))
        jitter = exponential * 0.2 * min(max(jitter_ratio, 0.0), 1.0)
        return min(exponential + jitter, self.max_backoff)


class RateLimitSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_requests: int = Field(default=DEFAULT_MAX_REQUESTS, gt=0)
    interval_seconds: float = Field(default=DEFAULT_INTERVAL_SECONDS, gt=0)


# Per-environment defaults carried over from the SDK's deployment profiles.
_PRESETS: dict[Environment, dict[str, Any]] = {
    Environment.DEVELOPMENT: {
        "connect_timeout": 30.0,
        "receive_timeout": 30.0,
        "retry_policy": RetryPolicy(max_retries=3),
        "rate_limit": RateLimitSettings(max_requests=80),
        "log_level": "DEBUG",
    },
    Environment.PRODUCTION: {
        "connect_timeout": 15.0,
        "receive_timeout": 15.0,
        "retry_policy": RetryPolicy(max_retries=5),
        "rate_limit": RateLimitSettings(max_requests=1000),
        "log_level": "INFO",
    },
    Environment.TESTING: {
        "connect_timeout": 5.0,
        "receive_timeout": 5.0,
        "retry_policy": RetryPolicy(max_retries=1),
        "rate_limit": RateLimitSettings(max_requests=10),
        "log_level": "DEBUG",
    },
}


class ClientSettings(BaseModel):
    """Everything the SDK needs to talk to the Graph API and receive webhooks."""

    model_config = ConfigDict(frozen=True)

    access_token: str = ""
    phone_number_id: str = ""
    business_account_id: str = ""
    verify_token: str = ""
    app_secret: str = ""

    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    connect_timeout: float = Field(default=30.0, gt=0)
    receive_timeout: float = Field(default=30.0, gt=0)
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    environment: Environment = Environment.PRODUCTION
    log_level: str = "INFO"

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.api_version}"

    @classmethod
    def for_environment(cls, environment: Environment, **overrides: Any) -> ClientSettings:
        values: dict[str, Any] = {**_PRESETS[environment], "environment": environment}
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_file(cls, path: str) -> ClientSettings:
        """Load settings from a JSON document."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        raw = json.loads(config_path.read_text())
        return cls.model_validate(raw)

    @classmethod
    def from_env(cls) -> ClientSettings:
        """Create settings from ``WHATSAPP_*`` environment variables."""
        env = Environment(os.environ.get("WHATSAPP_ENVIRONMENT", "production").lower())
        preset = _PRESETS[env]
        default_policy: RetryPolicy = preset["retry_policy"]
        default_limit: RateLimitSettings = preset["rate_limit"]

        retry_policy = RetryPolicy(
            max_retries=int(os.environ.get(
                "WHATSAPP_MAX_RETRIES", default_policy.max_retries,
            )),
            initial_backoff=float(os.environ.get(
                "WHATSAPP_INITIAL_BACKOFF", default_policy.initial_backoff,
            )),
            max_backoff=float(os.environ.get(
                "WHATSAPP_MAX_BACKOFF", default_policy.max_backoff,
            )),
        )
        rate_limit = RateLimitSettings(
            max_requests=int(os.environ.get(
                "WHATSAPP_RATE_LIMIT_MAX_REQUESTS", default_limit.max_requests,
            )),
            interval_seconds=float(os.environ.get(
                "WHATSAPP_RATE_LIMIT_INTERVAL", default_limit.interval_seconds,
            )),
        )
        return cls(
            access_token=os.environ.get("WHATSAPP_ACCESS_TOKEN", ""),
            phone_number_id=os.environ.get("WHATSAPP_PHONE_NUMBER_ID", ""),
            business_account_id=os.environ.get("WHATSAPP_BUSINESS_ACCOUNT_ID", ""),
            verify_token=os.environ.get("WHATSAPP_VERIFY_TOKEN", ""),
            app_secret=os.environ.get("WHATSAPP_APP_SECRET", ""),
            base_url=os.environ.get("WHATSAPP_BASE_URL", DEFAULT_BASE_URL),
            api_version=os.environ.get("WHATSAPP_API_VERSION", DEFAULT_API_VERSION),
            connect_timeout=float(os.environ.get(
                "WHATSAPP_CONNECT_TIMEOUT", preset["connect_timeout"],
            )),
            receive_timeout=float(os.environ.get(
                "WHATSAPP_RECEIVE_TIMEOUT", preset["receive_timeout"],
            )),
            retry_policy=retry_policy,
            rate_limit=rate_limit,
            environment=env,
            log_level=os.environ.get("WHATSAPP_LOG_LEVEL", preset["log_level"]).upper(),
        )
