"""Shared Pydantic models for Graph API responses."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    STICKER = "sticker"


class TemplateCategory(str, Enum):
    AUTHENTICATION = "AUTHENTICATION"
    MARKETING = "MARKETING"
    UTILITY = "UTILITY"


# --- Message Models ---


class ContactRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: str | None = None
    wa_id: str | None = None


class MessageRef(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    message_status: str | None = None


class MessageResponse(BaseModel):
    """Body of a successful ``POST /{phone_number_id}/messages``."""

    model_config = ConfigDict(frozen=True, extra="allow")

    messaging_product: str = "whatsapp"
    contacts: list[ContactRef] = Field(default_factory=list)
    messages: list[MessageRef] = Field(default_factory=list)
    success: bool | None = None

    @property
    def message_id(self) -> str | None:
        return self.messages[0].id if self.messages else None


# --- Outbound Content Models ---


class ListRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str | None = None


class ListSection(BaseModel):
    """One titled group of rows in an interactive list message."""

    model_config = ConfigDict(frozen=True)

    title: str
    rows: list[ListRow]


class ContactCard(BaseModel):
    """A vCard-style contact sent in a ``contacts`` message."""

    model_config = ConfigDict(frozen=True)

    first_name: str | None = None
    last_name: str | None = None
    formatted_name: str | None = None
    company: str | None = None
    phones: list[str] = Field(default_factory=list)
    emails: list[str] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        if self.formatted_name:
            return self.formatted_name
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_payload(self) -> dict:
        name: dict[str, str] = {"formatted_name": self.display_name}
        if self.first_name:
            name["first_name"] = self.first_name
        if self.last_name:
            name["last_name"] = self.last_name
        payload: dict = {
            "name": name,
            "phones": [{"phone": phone, "type": "CELL"} for phone in self.phones],
        }
        if self.company:
            payload["org"] = {"company": self.company}
        if self.emails:
            payload["emails"] = [{"email": email, "type": "WORK"} for email in self.emails]
        return payload


# --- Media Models ---


class MediaUploadResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str


class MediaInfo(BaseModel):
    """Metadata returned by ``GET /{media_id}``."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    url: str | None = None
    mime_type: str | None = None
    sha256: str | None = None
    file_size: int | None = None
    messaging_product: str | None = None


# --- Template Models ---


class TemplateInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str | None = None
    name: str
    status: str | None = None
    category: str | None = None
    language: str | None = None
    components: list[dict] = Field(default_factory=list)


class TemplateCreateResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    status: str | None = None
    category: str | None = None
