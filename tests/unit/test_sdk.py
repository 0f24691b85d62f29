"""Tests for the WhatsAppCloudClient facade."""

from __future__ import annotations

import pytest

from tests.conftest import BUSINESS_ACCOUNT_ID, PHONE_NUMBER_ID, json_response, scripted_transport
from wacloud.auth.provider import InMemoryTokenStore, StoredTokenAuth
from wacloud.client.errors import AuthError
from wacloud.config import ClientSettings, RateLimitSettings, RetryPolicy
from wacloud.sdk import WhatsAppCloudClient


def _make_settings(**kwargs: object) -> ClientSettings:
    defaults: dict[str, object] = {
        "access_token": "tok",
        "phone_number_id": PHONE_NUMBER_ID,
        "business_account_id": BUSINESS_ACCOUNT_ID,
        "verify_token": "tok123",
        "base_url": "https://graph.test",
        "api_version": "v20.0",
        "retry_policy": RetryPolicy(max_retries=0),
        "rate_limit": RateLimitSettings(max_requests=5, interval_seconds=1.0),
    }
    defaults.update(kwargs)
    return ClientSettings(**defaults)  # type: ignore[arg-type]


class TestWhatsAppCloudClient:
    @pytest.mark.asyncio
    async def test_send_text_hits_versioned_endpoint(self) -> None:
        transport = scripted_transport(json_response(200, {"messages": [{"id": "wamid.X"}]}))
        async with WhatsAppCloudClient(_make_settings(), transport=transport) as wa:
            response = await wa.messages.send_text("15551234567", "hi")
        assert response.message_id == "wamid.X"
        request = transport.requests[0]
        assert str(request.url) == f"https://graph.test/v20.0/{PHONE_NUMBER_ID}/messages"
        assert request.headers["authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_rate_limiter_built_from_settings(self) -> None:
        async with WhatsAppCloudClient(_make_settings()) as wa:
            assert wa.rate_limiter.max_requests == 5
            assert wa.rate_limiter.interval == 1.0
            assert wa.http.retry_policy.max_retries == 0
        assert wa.rate_limiter.closed

    @pytest.mark.asyncio
    async def test_services_are_cached(self) -> None:
        async with WhatsAppCloudClient(_make_settings()) as wa:
            assert wa.messages is wa.messages
            assert wa.media is wa.media
            assert wa.templates is wa.templates

    @pytest.mark.asyncio
    async def test_templates_require_business_account(self) -> None:
        async with WhatsAppCloudClient(_make_settings(business_account_id="")) as wa:
            with pytest.raises(ValueError):
                _ = wa.templates

    def test_empty_token_rejected(self) -> None:
        with pytest.raises(AuthError):
            WhatsAppCloudClient(_make_settings(access_token=""))

    @pytest.mark.asyncio
    async def test_custom_auth_provider(self) -> None:
        transport = scripted_transport(json_response(200, {"success": True}))
        store = InMemoryTokenStore("stored")
        settings = _make_settings(access_token="")
        async with WhatsAppCloudClient(settings, auth=StoredTokenAuth(store), transport=transport) as wa:
            assert await wa.messages.mark_as_read("wamid.1") is True
        assert transport.requests[0].headers["authorization"] == "Bearer stored"

    @pytest.mark.asyncio
    async def test_validate_webhook_uses_configured_token(self) -> None:
        query = {"hub.mode": "subscribe", "hub.verify_token": "tok123", "hub.challenge": "chal456"}
        async with WhatsAppCloudClient(_make_settings()) as wa:
            assert wa.validate_webhook(query) == "chal456"
            assert wa.validate_webhook({**query, "hub.verify_token": "wrong"}) is None


class TestPackageExports:
    def test_subpackages_re_export_public_names(self) -> None:
        import wacloud
        from wacloud import auth, client, server, services

        assert client.RetryingHttpClient is wacloud.RetryingHttpClient
        assert auth.TokenAuth is wacloud.TokenAuth
        assert services.MessageService.__module__ == "wacloud.services.messages"
        assert callable(server.create_app)
        for module in (auth, client, server, services):
            assert module.__doc__
            assert set(module.__all__) <= set(dir(module))
