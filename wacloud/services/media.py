"""Media upload, lookup, download and deletion."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from wacloud.models import MediaInfo, MediaKind, MediaUploadResponse
from wacloud.services.validators import InvalidRequestError, check_media_upload, require_url

if TYPE_CHECKING:
    from wacloud.client.http import RetryingHttpClient

logger = logging.getLogger(__name__)


class MediaService:
    def __init__(self, client: RetryingHttpClient, phone_number_id: str) -> None:
        if not phone_number_id:
            raise ValueError("phone_number_id is required")
        self._client = client
        self._phone_number_id = phone_number_id

    async def upload_bytes(self, content: bytes, mime_type: str, filename: str) -> str:
        """Upload raw bytes as multipart form data; return the media id."""
        check_media_upload(len(content), mime_type)
        body = await self._client.post(
            f"{self._phone_number_id}/media",
            files={"file": (filename, content, mime_type)},
            data={"messaging_product": "whatsapp", "type": mime_type},
        )
        media_id = MediaUploadResponse.model_validate(body).id
        logger.info("Uploaded media %s (%d bytes)", media_id, len(content))
        return media_id

    async def upload_file(self, path: str, mime_type: str | None = None) -> str:
        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"Media file not found: {path}")
        guessed = mime_type or mimetypes.guess_type(file_path.name)[0]
        if guessed is None:
            raise InvalidRequestError(f"Cannot determine media type of {file_path.name}")
        return await self.upload_bytes(file_path.read_bytes(), guessed, file_path.name)

    async def upload_from_url(self, url: str, kind: MediaKind | str) -> str:
        """Have the Graph API fetch a public URL into a media object; return its id."""
        media_kind = MediaKind(kind)
        body = await self._client.post(f"{self._phone_number_id}/media", {
            "messaging_product": "whatsapp",
            "type": media_kind.value,
            "url": require_url(url, "url"),
        })
        media_id = MediaUploadResponse.model_validate(body).id
        logger.info("Uploaded media %s from URL", media_id)
        return media_id

    async def get_media(self, media_id: str) -> MediaInfo:
        if not media_id:
            raise InvalidRequestError("media_id is required")
        body = await self._client.get(media_id)
        return MediaInfo.model_validate(body)

    async def download_media(self, media_id: str) -> bytes:
        """Resolve the short-lived download URL, then fetch it with auth."""
        info = await self.get_media(media_id)
        if not info.url:
            raise InvalidRequestError(f"Media {media_id} has no download URL")
        return await self._client.fetch_bytes(info.url)

    async def delete_media(self, media_id: str) -> bool:
        if not media_id:
            raise InvalidRequestError("media_id is required")
        body = await self._client.delete(media_id)
        return bool(isinstance(body, Mapping) and body.get("success"))
