"""Webhook ingestion: payload type detection, event parsing and handler fan-out.

Processing stages for ``process()`` / ``aprocess()``:
1. Decode (str / bytes → JSON); failures return False
2. Raw handlers get any decoded value, each isolated
3. Non-object bodies stop here and return False
4. Notification type detection from ``entry[0].changes[0].value``
5. Typed event construction (message / status)
6. Category handlers in registration order, each isolated

Nothing raised by a payload or a handler escapes ``process()``. Handlers may
be plain callables or coroutine functions.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from wacloud.webhook.access import (
    dig_first_change,
    first_map,
    get_float,
    get_list,
    get_map,
    get_scalar,
    get_str,
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
)
from wacloud.webhook.registry import HandlerCategory, HandlerRegistry, Subscription
from wacloud.webhook.verification import validate_webhook

logger = logging.getLogger(__name__)

BUSINESS_ACCOUNT_OBJECT = "whatsapp_business_account"

MEDIA_MESSAGE_TYPES = frozenset({"image", "video", "audio", "document", "sticker"})

ACCOUNT_FIELDS = frozenset({
    "account_update",
    "account_alerts",
    "account_review_update",
    "business_capability_update",
    "phone_number_quality_update",
    "phone_number_name_update",
})

MessageHandler = Callable[[MessageEvent], Any]
StatusHandler = Callable[[StatusEvent], Any]
RawHandler = Callable[[Any], Any]

# (handler, argument, category name)
_Call = tuple[Callable[[Any], Any], Any, str]

_UNDECODABLE = object()


def parse_timestamp(value: str | None) -> datetime | None:
    """Epoch seconds (string or number) → aware UTC datetime."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(float(value)), tz=UTC)
    except (ValueError, OverflowError, OSError):
        return None


def _media(item: Mapping[str, Any], message_type: str) -> MediaContent | None:
    block = get_map(item, message_type)
    if block is None:
        return None
    return MediaContent(
        media_id=get_scalar(block, "id"),
        mime_type=get_str(block, "mime_type"),
        sha256=get_str(block, "sha256"),
        caption=get_str(block, "caption"),
        filename=get_str(block, "filename"),
    )


def _location(item: Mapping[str, Any]) -> LocationContent | None:
    block = get_map(item, "location")
    if block is None:
        return None
    return LocationContent(
        latitude=get_float(block, "latitude"),
        longitude=get_float(block, "longitude"),
        name=get_str(block, "name"),
        address=get_str(block, "address"),
    )


def _interactive(item: Mapping[str, Any]) -> InteractiveReply | None:
    block = get_map(item, "interactive")
    if block is not None:
        reply_type = get_str(block, "type")
        reply = get_map(block, reply_type) if reply_type else None
        return InteractiveReply(
            reply_type=reply_type,
            reply_id=get_scalar(reply, "id"),
            title=get_str(reply, "title"),
        )
    # Quick-reply buttons on template messages arrive as type "button"
    button = get_map(item, "button")
    if button is not None:
        return InteractiveReply(
            reply_type="button",
            reply_id=get_str(button, "payload"),
            title=get_str(button, "text"),
        )
    return None


def _reaction(item: Mapping[str, Any]) -> ReactionContent | None:
    block = get_map(item, "reaction")
    if block is None:
        return None
    return ReactionContent(
        message_id=get_str(block, "message_id"),
        emoji=get_str(block, "emoji"),
    )


def _contact_names(value: Mapping[str, Any]) -> dict[str, str]:
    names: dict[str, str] = {}
    for contact in get_list(value, "contacts") or []:
        wa_id = get_scalar(contact, "wa_id")
        name = get_str(get_map(contact, "profile"), "name")
        if wa_id and name:
            names[wa_id] = name
    return names


def build_message_event(
    item: Any, value: Mapping[str, Any], payload: Mapping[str, Any],
) -> MessageEvent | None:
    """One MessageEvent from a ``value.messages[]`` item, or None if malformed."""
    message_id = get_scalar(item, "id")
    sender = get_scalar(item, "from")
    timestamp = parse_timestamp(get_scalar(item, "timestamp"))
    message_type = get_str(item, "type")
    if not (message_id and sender and timestamp and message_type):
        return None

    text: str | None = None
    if message_type == "text":
        text = get_str(get_map(item, "text"), "body")

    sender_digits = sender.lstrip("+")
    names = _contact_names(value)
    return MessageEvent(
        message_id=message_id,
        sender=sender,
        timestamp=timestamp,
        message_type=message_type,
        text=text,
        contact_name=names.get(sender) or names.get(sender_digits),
        phone_number_id=get_scalar(get_map(value, "metadata"), "phone_number_id"),
        reply_to_message_id=get_str(get_map(item, "context"), "id"),
        media=_media(item, message_type) if message_type in MEDIA_MESSAGE_TYPES else None,
        location=_location(item) if message_type == "location" else None,
        interactive=_interactive(item) if message_type in ("interactive", "button") else None,
        reaction=_reaction(item) if message_type == "reaction" else None,
        message=dict(item),
        raw_payload=dict(payload),
    )


def build_status_event(item: Any, payload: Mapping[str, Any]) -> StatusEvent | None:
    """One StatusEvent from a ``value.statuses[]`` item, or None if malformed."""
    message_id = get_scalar(item, "id")
    recipient = get_scalar(item, "recipient_id")
    status = get_str(item, "status")
    timestamp = parse_timestamp(get_scalar(item, "timestamp"))
    if not (message_id and recipient and status and timestamp):
        return None

    conversation = get_map(item, "conversation")
    pricing = get_map(item, "pricing")
    errors = [dict(err) for err in get_list(item, "errors") or [] if isinstance(err, Mapping)]
    return StatusEvent(
        message_id=message_id,
        recipient=recipient,
        status=status,
        timestamp=timestamp,
        conversation_id=get_scalar(conversation, "id"),
        conversation=dict(conversation) if conversation is not None else None,
        pricing=dict(pricing) if pricing is not None else None,
        errors=errors,
        raw_payload=dict(payload),
    )


def detect_notification_type(
    payload: Any, expected_object: str = BUSINESS_ACCOUNT_OBJECT,
) -> NotificationType:
    """Structural type detection. Any mismatch degrades to UNKNOWN."""
    if not isinstance(payload, Mapping) or payload.get("object") != expected_object:
        return NotificationType.UNKNOWN

    change = dig_first_change(payload)
    value = get_map(change, "value")
    if value is None:
        return NotificationType.UNKNOWN
    if get_list(value, "messages"):
        return NotificationType.MESSAGE
    if get_list(value, "statuses"):
        return NotificationType.STATUS
    if get_str(change, "field") in ACCOUNT_FIELDS:
        return NotificationType.ACCOUNT
    return NotificationType.UNKNOWN


class WebhookIngestor:
    """Turns webhook POST bodies into typed events for registered handlers."""

    def __init__(
        self,
        registry: HandlerRegistry | None = None,
        expected_object: str = BUSINESS_ACCOUNT_OBJECT,
    ) -> None:
        self._registry = registry or HandlerRegistry()
        self._expected_object = expected_object
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    def register_message_handler(self, handler: MessageHandler) -> Subscription:
        return self._registry.register(HandlerCategory.MESSAGE, handler)

    def register_status_handler(self, handler: StatusHandler) -> Subscription:
        return self._registry.register(HandlerCategory.STATUS, handler)

    def register_raw_handler(self, handler: RawHandler) -> Subscription:
        return self._registry.register(HandlerCategory.RAW, handler)

    def unregister(self, subscription: Subscription) -> bool:
        return self._registry.unregister(subscription)

    def clear_handlers(self) -> None:
        self._registry.clear()

    def detect_notification_type(self, payload: Any) -> NotificationType:
        return detect_notification_type(payload, self._expected_object)

    def parse_message_events(self, payload: Mapping[str, Any]) -> list[MessageEvent]:
        value = get_map(dig_first_change(payload), "value")
        if value is None:
            return []
        events = []
        for item in get_list(value, "messages") or []:
            event = build_message_event(item, value, payload)
            if event is None:
                logger.warning("Skipping malformed message item in webhook payload")
                continue
            events.append(event)
        return events

    def parse_status_events(self, payload: Mapping[str, Any]) -> list[StatusEvent]:
        value = get_map(dig_first_change(payload), "value")
        if value is None:
            return []
        events = []
        for item in get_list(value, "statuses") or []:
            event = build_status_event(item, payload)
            if event is None:
                logger.warning("Skipping malformed status item in webhook payload")
                continue
            events.append(event)
        return events

    def parse_account_event(self, payload: Mapping[str, Any]) -> AccountEvent | None:
        change = dig_first_change(payload)
        field = get_str(change, "field")
        if field is None:
            return None
        return AccountEvent(
            event_type=field,
            account_info=dict(get_map(change, "value") or {}),
            raw_payload=dict(payload),
        )

    def process(self, payload: Any) -> bool:
        """Dispatch one webhook body. True if at least one well-formed event was parsed.

        Coroutine handlers are scheduled on the running loop when there is
        one; use ``aprocess()`` to await them instead.
        """
        planned = self._plan(payload)
        if planned is None:
            return False
        calls, parsed = planned
        for handler, arg, kind in calls:
            self._invoke(handler, arg, kind)
        return parsed

    async def aprocess(self, payload: Any) -> bool:
        """Like ``process()``, but awaits coroutine handlers in order."""
        planned = self._plan(payload)
        if planned is None:
            return False
        calls, parsed = planned
        for handler, arg, kind in calls:
            await self._ainvoke(handler, arg, kind)
        return parsed

    async def drain(self) -> None:
        """Wait for handler tasks scheduled by ``process()``."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _plan(self, payload: Any) -> tuple[list[_Call], bool] | None:
        try:
            return self._build_calls(payload)
        except Exception:
            # Nothing escapes to the HTTP layer
            logger.exception("Unexpected failure while processing webhook")
            return None

    def _build_calls(self, payload: Any) -> tuple[list[_Call], bool]:
        decoded = self._decode(payload)
        if decoded is _UNDECODABLE:
            return [], False

        calls: list[_Call] = [
            (handler, decoded, HandlerCategory.RAW.value)
            for handler in self._registry.handlers(HandlerCategory.RAW)
        ]
        if not isinstance(decoded, Mapping):
            logger.error("Webhook body is not a JSON object")
            return calls, False

        notification_type = self.detect_notification_type(decoded)
        if notification_type is NotificationType.MESSAGE:
            events: list[Any] = self.parse_message_events(decoded)
            category = HandlerCategory.MESSAGE
        elif notification_type is NotificationType.STATUS:
            events = self.parse_status_events(decoded)
            category = HandlerCategory.STATUS
        elif notification_type is NotificationType.ACCOUNT:
            account = self.parse_account_event(decoded)
            logger.warning(
                "Account notifications are not handled yet (field=%s)",
                account.event_type if account else None,
            )
            return calls, False
        else:
            logger.warning("Unrecognized webhook notification")
            return calls, False

        if not events:
            logger.warning("No well-formed %s items in webhook payload", category.value)
            return calls, False

        handlers = self._registry.handlers(category)
        for event in events:
            self._log_event(event)
            calls.extend((handler, event, category.value) for handler in handlers)
        return calls, True

    @staticmethod
    def _decode(payload: Any) -> Any:
        if isinstance(payload, (str, bytes, bytearray)):
            try:
                return json.loads(payload)
            except ValueError:
                logger.error("Webhook body is not valid JSON")
                return _UNDECODABLE
        return payload

    def _invoke(self, handler: Callable[[Any], Any], arg: Any, kind: str) -> None:
        try:
            result = handler(arg)
        except Exception:
            logger.exception("Error in %s webhook handler", kind)
            return
        if inspect.isawaitable(result):
            self._schedule(result, kind)

    async def _ainvoke(self, handler: Callable[[Any], Any], arg: Any, kind: str) -> None:
        try:
            result = handler(arg)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Error in %s webhook handler", kind)

    def _schedule(self, awaitable: Awaitable[Any], kind: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error(
                "Async %s webhook handler needs a running event loop; use aprocess()", kind,
            )
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(task)

        def _done(finished: asyncio.Future[Any]) -> None:
            self._tasks.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                logger.error(
                    "Error in %s webhook handler", kind, exc_info=finished.exception(),
                )

        task.add_done_callback(_done)

    @staticmethod
    def _log_event(event: MessageEvent | StatusEvent) -> None:
        if isinstance(event, MessageEvent):
            logger.info(
                "Received message event: %s (%s)", event.message_type, event.message_id,
            )
        else:
            logger.info(
                "Received status event: %s for message %s", event.status, event.message_id,
            )

    def validate_webhook(
        self, query: Mapping[str, str], expected_verify_token: str,
    ) -> str | None:
        return validate_webhook(query, expected_verify_token)
