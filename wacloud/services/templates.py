"""Message template management on the WhatsApp Business Account."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from wacloud.models import TemplateCategory, TemplateCreateResponse, TemplateInfo
from wacloud.services.validators import InvalidRequestError, require_text

if TYPE_CHECKING:
    from wacloud.client.http import RetryingHttpClient

TEMPLATES_PATH = "message_templates"


class TemplateService:
    def __init__(self, client: RetryingHttpClient, business_account_id: str) -> None:
        if not business_account_id:
            raise ValueError("business_account_id is required")
        self._client = client
        self._business_account_id = business_account_id

    @property
    def endpoint(self) -> str:
        return f"{self._business_account_id}/{TEMPLATES_PATH}"

    async def list_templates(self, limit: int = 20) -> list[TemplateInfo]:
        if limit <= 0:
            raise InvalidRequestError("limit must be positive")
        body = await self._client.get(self.endpoint, {"limit": limit})
        items = body.get("data", []) if isinstance(body, Mapping) else []
        return [TemplateInfo.model_validate(item) for item in items]

    async def get_template(self, name: str) -> TemplateInfo | None:
        body = await self._client.get(
            self.endpoint, {"name": require_text(name, "Template name", 512)},
        )
        items = body.get("data", []) if isinstance(body, Mapping) else []
        return TemplateInfo.model_validate(items[0]) if items else None

    async def create_template(
        self,
        name: str,
        category: TemplateCategory | str,
        language: str,
        components: Sequence[Mapping[str, Any]],
    ) -> TemplateCreateResponse:
        if not components:
            raise InvalidRequestError("At least one template component is required")
        body = await self._client.post(self.endpoint, {
            "name": require_text(name, "Template name", 512),
            "category": TemplateCategory(category).value,
            "language": language,
            "components": [dict(c) for c in components],
        })
        return TemplateCreateResponse.model_validate(body)

    async def delete_template(self, name: str) -> bool:
        body = await self._client.delete(
            self.endpoint, query={"name": require_text(name, "Template name", 512)},
        )
        return bool(isinstance(body, Mapping) and body.get("success"))
