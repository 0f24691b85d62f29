"""Click CLI for sending messages and inspecting media and templates."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click

from wacloud.client.errors import ApiError
from wacloud.config import ClientSettings
from wacloud.sdk import WhatsAppCloudClient
from wacloud.services.validators import InvalidRequestError


def _run(ctx: click.Context, call: Callable[[WhatsAppCloudClient], Awaitable[Any]]) -> Any:
    settings: ClientSettings = ctx.obj["settings"]

    async def _main() -> Any:
        async with WhatsAppCloudClient(settings) as client:
            return await call(client)

    try:
        return asyncio.run(_main())
    except ApiError as exc:
        click.echo(json.dumps({
            "error": {
                "category": exc.category.value,
                "code": exc.code,
                "status_code": exc.status_code,
                "message": exc.message,
            },
        }, indent=2))
        sys.exit(1)
    except InvalidRequestError as exc:
        raise click.UsageError(str(exc)) from exc


def _parse_components(raw: str) -> list[dict[str, Any]]:
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--components") from exc
    if not isinstance(parsed, list) or not all(isinstance(c, dict) for c in parsed):
        raise click.BadParameter("must be a JSON array of objects", param_hint="--components")
    return parsed


def _echo_model(model: Any) -> None:
    click.echo(model.model_dump_json(indent=2, exclude_none=True))


@click.group()
@click.option("--config", "config_path", default=None, help="Path to settings JSON (default: environment).")
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """WhatsApp Cloud API command line client."""
    ctx.ensure_object(dict)
    try:
        settings = (
            ClientSettings.from_file(config_path) if config_path else ClientSettings.from_env()
        )
    except (OSError, ValueError) as exc:
        if config_path:
            raise click.BadParameter(str(exc), param_hint="--config") from exc
        raise click.UsageError(f"Invalid environment settings: {exc}") from exc
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.obj["settings"] = settings


@cli.command("send-text")
@click.argument("to")
@click.argument("body")
@click.option("--preview-url", is_flag=True, help="Render a link preview.")
@click.pass_context
def send_text(ctx: click.Context, to: str, body: str, preview_url: bool) -> None:
    """Send a text message."""
    response = _run(
        ctx, lambda c: c.messages.send_text(to, body, preview_url=preview_url),
    )
    _echo_model(response)


@cli.command("send-template")
@click.argument("to")
@click.argument("name")
@click.option("--language", default="en_US", help="Template language code.")
@click.option("--components", default=None, help="Template components as a JSON array.")
@click.pass_context
def send_template(
    ctx: click.Context, to: str, name: str, language: str, components: str | None,
) -> None:
    """Send an approved template message."""
    parsed = _parse_components(components) if components else None
    response = _run(
        ctx,
        lambda c: c.messages.send_template(
            to, name, language_code=language, components=parsed,
        ),
    )
    _echo_model(response)


@cli.command("mark-read")
@click.argument("message_id")
@click.pass_context
def mark_read(ctx: click.Context, message_id: str) -> None:
    """Mark an inbound message as read."""
    ok = _run(ctx, lambda c: c.messages.mark_as_read(message_id))
    click.echo(json.dumps({"success": ok}))


@cli.command("templates")
@click.option("--limit", default=20, show_default=True, help="Maximum templates to list.")
@click.pass_context
def templates(ctx: click.Context, limit: int) -> None:
    """List message templates on the business account."""
    items = _run(ctx, lambda c: c.templates.list_templates(limit))
    output = [
        {"name": t.name, "status": t.status, "category": t.category, "language": t.language}
        for t in items
    ]
    click.echo(json.dumps(output, indent=2))


@cli.command("media-info")
@click.argument("media_id")
@click.pass_context
def media_info(ctx: click.Context, media_id: str) -> None:
    """Show metadata for an uploaded media object."""
    _echo_model(_run(ctx, lambda c: c.media.get_media(media_id)))


@cli.command("upload")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--mime-type", default=None, help="Override the guessed MIME type.")
@click.pass_context
def upload(ctx: click.Context, path: str, mime_type: str | None) -> None:
    """Upload a media file and print its id."""
    media_id = _run(ctx, lambda c: c.media.upload_file(path, mime_type))
    click.echo(json.dumps({"id": media_id}))
