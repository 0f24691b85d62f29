"""Top-level client wiring settings, auth, rate limiting and the service layer."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx

from wacloud.auth.provider import AuthProvider, TokenAuth
from wacloud.client.http import RetryingHttpClient
from wacloud.client.rate_limiter import RateLimiter
from wacloud.config import ClientSettings
from wacloud.services.media import MediaService
from wacloud.services.messages import MessageService
from wacloud.services.templates import TemplateService
from wacloud.webhook.ingestor import WebhookIngestor
from wacloud.webhook.verification import validate_webhook

logger = logging.getLogger(__name__)


class WhatsAppCloudClient:
    """One configured connection to the WhatsApp Cloud API.

    Services are created lazily so a client configured without a
    business account id can still send messages, and vice versa.

    Usage::

        async with WhatsAppCloudClient(ClientSettings.from_env()) as wa:
            await wa.messages.send_text("+15551234567", "hello")
    """

    def __init__(
        self,
        settings: ClientSettings,
        *,
        auth: AuthProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._auth = auth or TokenAuth(settings.access_token)
        self._rate_limiter = RateLimiter(
            settings.rate_limit.max_requests,
            settings.rate_limit.interval_seconds,
        )
        self._http = RetryingHttpClient(
            settings.api_url,
            self._auth,
            retry_policy=settings.retry_policy,
            rate_limiter=self._rate_limiter,
            connect_timeout=settings.connect_timeout,
            receive_timeout=settings.receive_timeout,
            transport=transport,
        )
        self._messages: MessageService | None = None
        self._media: MediaService | None = None
        self._templates: TemplateService | None = None
        self._webhooks = WebhookIngestor()
        logger.info(
            "WhatsApp client ready (%s, api %s)",
            settings.environment.value, settings.api_version,
        )

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def http(self) -> RetryingHttpClient:
        return self._http

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    @property
    def messages(self) -> MessageService:
        if self._messages is None:
            self._messages = MessageService(self._http, self._settings.phone_number_id)
        return self._messages

    @property
    def media(self) -> MediaService:
        if self._media is None:
            self._media = MediaService(self._http, self._settings.phone_number_id)
        return self._media

    @property
    def templates(self) -> TemplateService:
        if self._templates is None:
            self._templates = TemplateService(
                self._http, self._settings.business_account_id,
            )
        return self._templates

    @property
    def webhooks(self) -> WebhookIngestor:
        return self._webhooks

    def validate_webhook(self, query: Mapping[str, str]) -> str | None:
        return validate_webhook(query, self._settings.verify_token)

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._rate_limiter.aclose()

    async def __aenter__(self) -> WhatsAppCloudClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
