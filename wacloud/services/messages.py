"""Outbound message operations built over the retrying client."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from wacloud.models import ContactCard, ListSection, MediaKind, MessageResponse
from wacloud.services.validators import (
    MAX_BUTTON_TITLE_LENGTH,
    MAX_BUTTONS,
    MAX_CAPTION_LENGTH,
    MAX_LIST_ROWS,
    MAX_LIST_SECTIONS,
    MAX_LIST_TITLE_LENGTH,
    MAX_ROW_DESCRIPTION_LENGTH,
    MAX_ROW_ID_LENGTH,
    MAX_TEXT_LENGTH,
    InvalidRequestError,
    is_valid_phone_number,
    normalize_phone_number,
    require_text,
    require_url,
)

if TYPE_CHECKING:
    from wacloud.client.http import RetryingHttpClient

logger = logging.getLogger(__name__)

MESSAGES_PATH = "messages"


class MessageService:
    """Sends messages from one business phone number."""

    def __init__(self, client: RetryingHttpClient, phone_number_id: str) -> None:
        if not phone_number_id:
            raise ValueError("phone_number_id is required")
        self._client = client
        self._phone_number_id = phone_number_id

    @property
    def endpoint(self) -> str:
        return f"{self._phone_number_id}/{MESSAGES_PATH}"

    def _envelope(self, to: str, message_type: str) -> dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": normalize_phone_number(to),
            "type": message_type,
        }

    async def send_payload(self, payload: Mapping[str, Any]) -> MessageResponse:
        """POST a prebuilt message body."""
        if not payload:
            raise InvalidRequestError("Message payload cannot be empty")
        body = await self._client.post(self.endpoint, dict(payload))
        response = MessageResponse.model_validate(body or {})
        logger.info(
            "Sent %s message %s", payload.get("type", "unknown"), response.message_id,
        )
        return response

    async def send_text(
        self,
        to: str,
        body: str,
        *,
        preview_url: bool = False,
        reply_to: str | None = None,
    ) -> MessageResponse:
        payload = self._envelope(to, "text")
        payload["text"] = {
            "body": require_text(body, "Message body", MAX_TEXT_LENGTH),
            "preview_url": preview_url,
        }
        if reply_to:
            payload["context"] = {"message_id": reply_to}
        return await self.send_payload(payload)

    async def send_media(
        self,
        to: str,
        kind: MediaKind | str,
        *,
        media_id: str | None = None,
        link: str | None = None,
        caption: str | None = None,
        filename: str | None = None,
    ) -> MessageResponse:
        """Send an uploaded media id or a public link (exactly one of them)."""
        media_kind = MediaKind(kind)
        if bool(media_id) == bool(link):
            raise InvalidRequestError("Provide exactly one of media_id or link")

        media: dict[str, Any] = {"id": media_id} if media_id else {"link": link}
        if caption:
            if media_kind in (MediaKind.AUDIO, MediaKind.STICKER):
                raise InvalidRequestError(f"{media_kind.value} messages cannot have a caption")
            media["caption"] = require_text(caption, "Caption", MAX_CAPTION_LENGTH)
        if filename:
            if media_kind is not MediaKind.DOCUMENT:
                raise InvalidRequestError("filename is only valid for documents")
            media["filename"] = filename

        payload = self._envelope(to, media_kind.value)
        payload[media_kind.value] = media
        return await self.send_payload(payload)

    async def send_location(
        self,
        to: str,
        latitude: float,
        longitude: float,
        *,
        name: str | None = None,
        address: str | None = None,
    ) -> MessageResponse:
        if not (-90 <= latitude <= 90) or not (-180 <= longitude <= 180):
            raise InvalidRequestError("Coordinates out of range")
        location: dict[str, Any] = {"latitude": latitude, "longitude": longitude}
        if name:
            location["name"] = name
        if address:
            location["address"] = address
        payload = self._envelope(to, "location")
        payload["location"] = location
        return await self.send_payload(payload)

    async def send_template(
        self,
        to: str,
        name: str,
        *,
        language_code: str = "en_US",
        components: Sequence[Mapping[str, Any]] | None = None,
    ) -> MessageResponse:
        template: dict[str, Any] = {
            "name": require_text(name, "Template name", 512),
            "language": {"code": language_code},
        }
        if components:
            template["components"] = [dict(c) for c in components]
        payload = self._envelope(to, "template")
        payload["template"] = template
        return await self.send_payload(payload)

    async def send_reaction(self, to: str, message_id: str, emoji: str) -> MessageResponse:
        if not message_id:
            raise InvalidRequestError("message_id is required")
        if not emoji:
            raise InvalidRequestError("Emoji cannot be empty")
        payload = self._envelope(to, "reaction")
        payload["reaction"] = {"message_id": message_id, "emoji": emoji}
        return await self.send_payload(payload)

    async def send_buttons(
        self,
        to: str,
        body: str,
        buttons: Sequence[tuple[str, str]],
        *,
        header: str | None = None,
        footer: str | None = None,
    ) -> MessageResponse:
        """Interactive reply buttons; ``buttons`` is a sequence of (id, title)."""
        if not buttons or len(buttons) > MAX_BUTTONS:
            raise InvalidRequestError(f"Between 1 and {MAX_BUTTONS} buttons are required")
        interactive: dict[str, Any] = {
            "type": "button",
            "body": {"text": require_text(body, "Body", MAX_TEXT_LENGTH)},
            "action": {
                "buttons": [
                    {
                        "type": "reply",
                        "reply": {
                            "id": button_id,
                            "title": require_text(title, "Button title", MAX_BUTTON_TITLE_LENGTH),
                        },
                    }
                    for button_id, title in buttons
                ],
            },
        }
        return await self._send_interactive(to, interactive, header, footer)

    async def send_list(
        self,
        to: str,
        body: str,
        button_text: str,
        sections: Sequence[ListSection],
        *,
        header: str | None = None,
        footer: str | None = None,
    ) -> MessageResponse:
        """Interactive list: up to 10 sections and 10 rows in total."""
        if not sections or len(sections) > MAX_LIST_SECTIONS:
            raise InvalidRequestError(f"Between 1 and {MAX_LIST_SECTIONS} sections are required")
        total_rows = sum(len(section.rows) for section in sections)
        if not total_rows or total_rows > MAX_LIST_ROWS:
            raise InvalidRequestError(f"Between 1 and {MAX_LIST_ROWS} rows are required")

        rendered = []
        for section in sections:
            rows = []
            for row in section.rows:
                item = {
                    "id": require_text(row.id, "Row id", MAX_ROW_ID_LENGTH),
                    "title": require_text(row.title, "Row title", MAX_LIST_TITLE_LENGTH),
                }
                if row.description:
                    item["description"] = require_text(
                        row.description, "Row description", MAX_ROW_DESCRIPTION_LENGTH,
                    )
                rows.append(item)
            rendered.append({
                "title": require_text(section.title, "Section title", MAX_LIST_TITLE_LENGTH),
                "rows": rows,
            })

        return await self._send_interactive(to, {
            "type": "list",
            "body": {"text": require_text(body, "Body", MAX_TEXT_LENGTH)},
            "action": {
                "button": require_text(button_text, "List button", MAX_BUTTON_TITLE_LENGTH),
                "sections": rendered,
            },
        }, header, footer)

    async def send_cta_url(
        self,
        to: str,
        body: str,
        button_text: str,
        url: str,
        *,
        header: str | None = None,
        footer: str | None = None,
    ) -> MessageResponse:
        return await self._send_interactive(to, {
            "type": "cta_url",
            "body": {"text": require_text(body, "Body", MAX_TEXT_LENGTH)},
            "action": {
                "name": "cta_url",
                "parameters": {
                    "display_text": require_text(
                        button_text, "Button text", MAX_BUTTON_TITLE_LENGTH,
                    ),
                    "url": require_url(url, "url"),
                },
            },
        }, header, footer)

    async def send_contacts(self, to: str, contacts: Sequence[ContactCard]) -> MessageResponse:
        if not contacts:
            raise InvalidRequestError("At least one contact is required")
        for card in contacts:
            if not card.display_name:
                raise InvalidRequestError("Contact needs a first or formatted name")
            if not card.phones or not all(is_valid_phone_number(p) for p in card.phones):
                raise InvalidRequestError("Contact needs at least one valid phone number")
        payload = self._envelope(to, "contacts")
        payload["contacts"] = [card.to_payload() for card in contacts]
        return await self.send_payload(payload)

    async def _send_interactive(
        self,
        to: str,
        interactive: dict[str, Any],
        header: str | None,
        footer: str | None,
    ) -> MessageResponse:
        if header:
            interactive["header"] = {"type": "text", "text": header}
        if footer:
            interactive["footer"] = {"text": footer}
        payload = self._envelope(to, "interactive")
        payload["interactive"] = interactive
        return await self.send_payload(payload)

    async def get_message_status(self, message_id: str) -> dict[str, Any]:
        """Raw ``GET /{phone_number_id}/messages/{message_id}`` body."""
        if not message_id:
            raise InvalidRequestError("message_id is required")
        body = await self._client.get(f"{self.endpoint}/{message_id}")
        return dict(body) if isinstance(body, Mapping) else {}

    async def mark_as_read(self, message_id: str) -> bool:
        if not message_id:
            raise InvalidRequestError("message_id is required")
        body = await self._client.post(self.endpoint, {
            "messaging_product": "whatsapp",
            "status": "read",
            "message_id": message_id,
        })
        return bool(isinstance(body, Mapping) and body.get("success"))
