"""Meta webhook handshake and payload signature checks."""

from __future__ import annotations

import hashlib
import hmac
import logging
from collections.abc import Mapping

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-hub-signature-256"


def validate_webhook(
    query: Mapping[str, str], expected_verify_token: str,
) -> str | None:
    """Return ``hub.challenge`` for a valid subscribe handshake, else None.

    Token comparison is constant-time.
    """
    mode = query.get("hub.mode")
    token = query.get("hub.verify_token")
    challenge = query.get("hub.challenge")

    if (
        mode == "subscribe"
        and token is not None
        and expected_verify_token
        and challenge is not None
        and hmac.compare_digest(token.encode(), expected_verify_token.encode())
    ):
        logger.info("Webhook verified")
        return challenge

    logger.warning("Webhook verification failed (mode=%s)", mode)
    return None


def verify_signature(
    headers: Mapping[str, str], body: bytes, app_secret: str,
) -> bool:
    """Check ``X-Hub-Signature-256`` (HMAC-SHA256 of the raw body)."""
    signature = headers.get(SIGNATURE_HEADER) or headers.get("X-Hub-Signature-256") or ""
    if not signature.startswith("sha256="):
        return False

    expected = hmac.new(app_secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature[7:].encode(), expected.encode())
