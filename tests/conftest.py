"""Shared test fixtures for wacloud."""

from __future__ import annotations

import hashlib
import hmac as hmac_mod
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from wacloud.auth.provider import TokenAuth
from wacloud.client.http import RetryingHttpClient
from wacloud.config import RetryPolicy

TEST_TOKEN = "test_access_token"
PHONE_NUMBER_ID = "1234567890"
BUSINESS_ACCOUNT_ID = "9876543210"
BASE_URL = "https://graph.test/v21.0"

# Epoch seconds for 2023-11-14T22:13:20Z
MOCK_TIMESTAMP = "1700000000"


# --- Factory functions for webhook payloads ---


def make_text_message(**kwargs: Any) -> dict[str, Any]:
    """A ``value.messages[]`` item with sensible defaults."""
    defaults: dict[str, Any] = {
        "from": "15551234567",
        "id": "wamid.ABC",
        "timestamp": MOCK_TIMESTAMP,
        "type": "text",
        "text": {"body": "hello"},
    }
    defaults.update(kwargs)
    return defaults


def make_status_item(**kwargs: Any) -> dict[str, Any]:
    """A ``value.statuses[]`` item with sensible defaults."""
    defaults: dict[str, Any] = {
        "id": "wamid.OUT",
        "recipient_id": "15551234567",
        "status": "delivered",
        "timestamp": MOCK_TIMESTAMP,
    }
    defaults.update(kwargs)
    return defaults


def make_webhook_payload(
    value: dict[str, Any],
    field: str = "messages",
    object_type: str = "whatsapp_business_account",
) -> dict[str, Any]:
    return {
        "object": object_type,
        "entry": [
            {
                "id": BUSINESS_ACCOUNT_ID,
                "changes": [{"value": value, "field": field}],
            }
        ],
    }


def make_message_payload(
    messages: list[dict[str, Any]] | None = None,
    contacts: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Factory for a message notification."""
    value: dict[str, Any] = {
        "messaging_product": "whatsapp",
        "metadata": {
            "display_phone_number": "15550000000",
            "phone_number_id": PHONE_NUMBER_ID,
        },
        "messages": messages if messages is not None else [make_text_message()],
    }
    if contacts is not None:
        value["contacts"] = contacts
    return make_webhook_payload(value)


def make_status_payload(statuses: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    """Factory for a status notification."""
    return make_webhook_payload({
        "messaging_product": "whatsapp",
        "metadata": {"phone_number_id": PHONE_NUMBER_ID},
        "statuses": statuses if statuses is not None else [make_status_item()],
    })


def sign_body(app_secret: str, body: bytes) -> str:
    sig = hmac_mod.new(app_secret.encode(), body, hashlib.sha256).hexdigest()
    return f"sha256={sig}"


# --- HTTP helpers ---


def json_response(status_code: int, body: Any, **kwargs: Any) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode(), **kwargs)


def graph_error(code: int, message: str, error_type: str = "OAuthException") -> dict[str, Any]:
    return {"error": {"message": message, "type": error_type, "code": code, "fbtrace_id": "TRACE"}}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


def scripted_transport(*responses: httpx.Response | Exception) -> RecordingTransport:
    """Serve the given responses (or raise the given exceptions) in order."""
    queue = list(responses)

    def _handler(request: httpx.Request) -> httpx.Response:
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        # Fresh object per request; httpx binds a response to its request
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    return RecordingTransport(_handler)


def make_http_client(
    transport: httpx.AsyncBaseTransport,
    **kwargs: Any,
) -> RetryingHttpClient:
    """Factory for RetryingHttpClient with fast, deterministic defaults."""
    defaults: dict[str, Any] = {
        "retry_policy": RetryPolicy(max_retries=3, initial_backoff=0.01, max_backoff=0.1),
        "rng": lambda: 0.0,
        "transport": transport,
    }
    defaults.update(kwargs)
    auth = defaults.pop("auth", TokenAuth(TEST_TOKEN))
    return RetryingHttpClient(BASE_URL, auth, **defaults)


@pytest.fixture
def message_payload() -> dict[str, Any]:
    return make_message_payload()


@pytest.fixture
def status_payload() -> dict[str, Any]:
    return make_status_payload()
