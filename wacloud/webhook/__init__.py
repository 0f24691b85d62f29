"""Inbound webhook handling for the WhatsApp Cloud API.

This package provides:
- Notification type detection and typed events
- Ordered handler registration with subscription handles
- Verification handshake and payload signature checks
"""

from wacloud.webhook.ingestor import (
    BUSINESS_ACCOUNT_OBJECT,
    WebhookIngestor,
    detect_notification_type,
)
from wacloud.webhook.models import (
    AccountEvent,
    InteractiveReply,
    LocationContent,
    MediaContent,
    MessageEvent,
    NotificationType,
    ReactionContent,
    StatusEvent,
    WebhookEvent,
)
from wacloud.webhook.registry import HandlerCategory, HandlerRegistry, Subscription
from wacloud.webhook.verification import validate_webhook, verify_signature

__all__ = [
    "BUSINESS_ACCOUNT_OBJECT",
    "AccountEvent",
    "HandlerCategory",
    "HandlerRegistry",
    "InteractiveReply",
    "LocationContent",
    "MediaContent",
    "MessageEvent",
    "NotificationType",
    "ReactionContent",
    "StatusEvent",
    "Subscription",
    "WebhookEvent",
    "WebhookIngestor",
    "detect_notification_type",
    "validate_webhook",
    "verify_signature",
]
