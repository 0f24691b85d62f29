"""Tests for TemplateService."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.conftest import BUSINESS_ACCOUNT_ID
from wacloud.models import TemplateCategory
from wacloud.services.templates import TemplateService
from wacloud.services.validators import InvalidRequestError

ENDPOINT = f"{BUSINESS_ACCOUNT_ID}/message_templates"

TEMPLATES = {
    "data": [
        {
            "name": "hello_world",
            "status": "APPROVED",
            "category": "UTILITY",
            "language": "en_US",
            "components": [{"type": "BODY", "text": "Hello World"}],
            "id": "T1",
        },
        {"name": "promo", "status": "PENDING", "category": "MARKETING", "language": "de", "id": "T2"},
    ],
    "paging": {"cursors": {"before": "a", "after": "b"}},
}


def _make_service() -> tuple[TemplateService, MagicMock]:
    client = MagicMock()
    client.get = AsyncMock(return_value=TEMPLATES)
    client.post = AsyncMock(return_value={"id": "T3", "status": "PENDING", "category": "UTILITY"})
    client.delete = AsyncMock(return_value={"success": True})
    return TemplateService(client, BUSINESS_ACCOUNT_ID), client


class TestTemplateService:
    @pytest.mark.asyncio
    async def test_list_templates(self) -> None:
        service, client = _make_service()
        templates = await service.list_templates(limit=5)
        assert [t.name for t in templates] == ["hello_world", "promo"]
        assert templates[0].components[0]["type"] == "BODY"
        client.get.assert_awaited_once_with(ENDPOINT, {"limit": 5})

    @pytest.mark.asyncio
    async def test_list_rejects_non_positive_limit(self) -> None:
        service, _ = _make_service()
        with pytest.raises(InvalidRequestError):
            await service.list_templates(limit=0)

    @pytest.mark.asyncio
    async def test_get_template_by_name(self) -> None:
        service, client = _make_service()
        template = await service.get_template("hello_world")
        assert template is not None
        assert template.id == "T1"
        client.get.assert_awaited_once_with(ENDPOINT, {"name": "hello_world"})

    @pytest.mark.asyncio
    async def test_get_template_not_found(self) -> None:
        service, client = _make_service()
        client.get.return_value = {"data": []}
        assert await service.get_template("missing") is None

    @pytest.mark.asyncio
    async def test_create_template(self) -> None:
        service, client = _make_service()
        components = [{"type": "BODY", "text": "Your code is {{1}}"}]
        created = await service.create_template(
            "otp_code", TemplateCategory.UTILITY, "en_US", components,
        )
        assert created.id == "T3"
        path, body = client.post.await_args.args
        assert path == ENDPOINT
        assert body == {
            "name": "otp_code",
            "category": "UTILITY",
            "language": "en_US",
            "components": components,
        }

    @pytest.mark.asyncio
    async def test_create_requires_components(self) -> None:
        service, client = _make_service()
        with pytest.raises(InvalidRequestError):
            await service.create_template("x", "MARKETING", "en_US", [])
        client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_category(self) -> None:
        service, _ = _make_service()
        with pytest.raises(ValueError):
            await service.create_template("x", "SPAM", "en_US", [{"type": "BODY"}])

    @pytest.mark.asyncio
    async def test_delete_by_name(self) -> None:
        service, client = _make_service()
        assert await service.delete_template("promo") is True
        client.delete.assert_awaited_once_with(ENDPOINT, query={"name": "promo"})

    def test_business_account_required(self) -> None:
        with pytest.raises(ValueError):
            TemplateService(MagicMock(), "")
