"""Typed events built from inbound webhook notifications."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    MESSAGE = "message"
    STATUS = "status"
    ACCOUNT = "account"
    UNKNOWN = "unknown"


class MediaContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    media_id: str | None = None
    mime_type: str | None = None
    sha256: str | None = None
    caption: str | None = None
    filename: str | None = None


class LocationContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float | None = None
    longitude: float | None = None
    name: str | None = None
    address: str | None = None


class InteractiveReply(BaseModel):
    """Button or list selection made by the user."""

    model_config = ConfigDict(frozen=True)

    reply_type: str | None = None
    reply_id: str | None = None
    title: str | None = None


class ReactionContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_id: str | None = None
    emoji: str | None = None


class WebhookEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: NotificationType
    raw_payload: dict[str, Any] = Field(repr=False)


class MessageEvent(WebhookEvent):
    """An inbound user message."""

    type: NotificationType = NotificationType.MESSAGE
    message_id: str
    sender: str
    timestamp: datetime
    message_type: str
    text: str | None = None
    contact_name: str | None = None
    phone_number_id: str | None = None
    reply_to_message_id: str | None = None
    media: MediaContent | None = None
    location: LocationContent | None = None
    interactive: InteractiveReply | None = None
    reaction: ReactionContent | None = None
    message: dict[str, Any] = Field(default_factory=dict, repr=False)


class StatusEvent(WebhookEvent):
    """Delivery status change for a message sent by the business."""

    type: NotificationType = NotificationType.STATUS
    message_id: str
    recipient: str
    status: str
    timestamp: datetime
    conversation_id: str | None = None
    conversation: dict[str, Any] | None = None
    pricing: dict[str, Any] | None = None
    errors: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def is_sent(self) -> bool:
        return self.status == "sent"

    @property
    def is_delivered(self) -> bool:
        return self.status == "delivered"

    @property
    def is_read(self) -> bool:
        return self.status == "read"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"


class AccountEvent(WebhookEvent):
    type: NotificationType = NotificationType.ACCOUNT
    event_type: str
    account_info: dict[str, Any] = Field(default_factory=dict)
