"""FastAPI application receiving WhatsApp Cloud API webhooks."""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from wacloud.webhook.ingestor import WebhookIngestor
from wacloud.webhook.verification import validate_webhook, verify_signature

logger = logging.getLogger(__name__)

EVENT_RECEIVED = "EVENT_RECEIVED"


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    verify_token = os.environ["WHATSAPP_VERIFY_TOKEN"]
    app_secret = os.environ.get("WHATSAPP_APP_SECRET") or None
    logging.basicConfig(level=os.environ.get("WHATSAPP_LOG_LEVEL", "INFO").upper())
    return create_app(WebhookIngestor(), verify_token, app_secret)


def create_app(
    ingestor: WebhookIngestor,
    verify_token: str,
    app_secret: str | None = None,
) -> FastAPI:
    """Create the webhook app.

    When ``app_secret`` is set, POST bodies must carry a valid
    ``X-Hub-Signature-256`` header or they are rejected with 401.
    """
    app = FastAPI(docs_url=None, redoc_url=None)
    app.state.ingestor = ingestor

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/webhook")
    async def verify(request: Request) -> Response:
        challenge = validate_webhook(dict(request.query_params), verify_token)
        if challenge is None:
            return PlainTextResponse("Forbidden", status_code=403)
        return PlainTextResponse(challenge)

    @app.post("/webhook")
    async def receive(request: Request) -> Response:
        body = await request.body()
        if app_secret and not verify_signature(
            dict(request.headers), body, app_secret,
        ):
            logger.warning("Rejected webhook with invalid signature")
            return JSONResponse({"error": "Invalid signature"}, status_code=401)

        # Meta retries anything that is not a 200, so failures are only logged
        if not await ingestor.aprocess(body):
            logger.info("Webhook body produced no events")
        return PlainTextResponse(EVENT_RECEIVED)

    return app
