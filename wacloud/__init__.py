"""WhatsApp Cloud API client SDK.

This package provides:
- A rate-limited, retrying async HTTP client for the Graph API
- Classified API errors
- Message, media and template services
- Webhook ingestion with typed events and ordered handlers
"""

from wacloud.auth.provider import InMemoryTokenStore, StoredTokenAuth, TokenAuth
from wacloud.client.errors import (
    ApiError,
    AuthError,
    ClientError,
    ErrorCategory,
    NetworkError,
    RateLimitError,
    ServerError,
    UnknownError,
)
from wacloud.client.http import RetryingHttpClient
from wacloud.client.rate_limiter import RateLimiter
from wacloud.config import ClientSettings, Environment, RetryPolicy
from wacloud.models import ContactCard, ListRow, ListSection
from wacloud.sdk import WhatsAppCloudClient
from wacloud.services.validators import InvalidRequestError
from wacloud.webhook import MessageEvent, StatusEvent, WebhookIngestor

__all__ = [
    "ApiError",
    "AuthError",
    "ClientError",
    "ClientSettings",
    "ContactCard",
    "Environment",
    "ErrorCategory",
    "InMemoryTokenStore",
    "InvalidRequestError",
    "ListRow",
    "ListSection",
    "MessageEvent",
    "NetworkError",
    "RateLimitError",
    "RateLimiter",
    "RetryPolicy",
    "RetryingHttpClient",
    "ServerError",
    "StatusEvent",
    "StoredTokenAuth",
    "TokenAuth",
    "UnknownError",
    "WebhookIngestor",
    "WhatsAppCloudClient",
]
