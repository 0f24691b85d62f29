"""Input checks applied before a request leaves the process."""

from __future__ import annotations

import re
from urllib.parse import urlparse

MAX_TEXT_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024
MAX_BUTTONS = 3
MAX_BUTTON_TITLE_LENGTH = 20
MAX_LIST_SECTIONS = 10
MAX_LIST_ROWS = 10
MAX_LIST_TITLE_LENGTH = 24
MAX_ROW_ID_LENGTH = 200
MAX_ROW_DESCRIPTION_LENGTH = 72
MAX_MEDIA_SIZE_BYTES = 16 * 1024 * 1024

SUPPORTED_MEDIA_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/webp",
    "video/mp4",
    "video/3gpp",
    "audio/aac",
    "audio/mp4",
    "audio/mpeg",
    "audio/amr",
    "audio/ogg",
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
})

# E.164 without formatting: optional +, 7-15 digits, no leading zero
_PHONE_RE = re.compile(r"^\+?[1-9]\d{6,14}$")
_FORMATTING_RE = re.compile(r"[\s\-().]")


class InvalidRequestError(ValueError):
    """Raised when a request is rejected locally, before any network call."""


def normalize_phone_number(phone_number: str) -> str:
    """Strip spaces, dashes, dots and parentheses; validate E.164 shape."""
    cleaned = _FORMATTING_RE.sub("", phone_number or "")
    if not _PHONE_RE.match(cleaned):
        raise InvalidRequestError(f"Invalid recipient phone number: {phone_number!r}")
    return cleaned


def is_valid_phone_number(phone_number: str) -> bool:
    try:
        normalize_phone_number(phone_number)
    except InvalidRequestError:
        return False
    return True


def require_text(value: str, field: str, max_length: int) -> str:
    if not value or not value.strip():
        raise InvalidRequestError(f"{field} cannot be empty")
    if len(value) > max_length:
        raise InvalidRequestError(f"{field} exceeds {max_length} characters")
    return value


def require_url(value: str, field: str) -> str:
    parsed = urlparse(value or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidRequestError(f"{field} must be an http(s) URL")
    return value


def check_media_upload(size: int, mime_type: str) -> None:
    if size <= 0:
        raise InvalidRequestError("Media file is empty")
    if size > MAX_MEDIA_SIZE_BYTES:
        raise InvalidRequestError(
            f"Media file exceeds {MAX_MEDIA_SIZE_BYTES} bytes ({size} bytes)"
        )
    if mime_type not in SUPPORTED_MEDIA_TYPES:
        raise InvalidRequestError(f"Unsupported media type: {mime_type}")
